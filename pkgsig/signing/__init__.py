"""Signing key extraction and repository reconciliation."""

from .models import (
    MAX_EXPIRATION_DATE,
    KeyIdentity,
    KeyStore,
    KeyType,
    Repository,
    SigningKey,
)
from .readgpg import (
    BlockParseError,
    ExtractionResult,
    HintPolicy,
    KeyExtractionError,
    extract_keys,
)
from .repositories import merge_repositories, unverified_repositories

__all__ = [
    "MAX_EXPIRATION_DATE", "KeyIdentity", "KeyStore", "KeyType", "Repository", "SigningKey",
    "BlockParseError", "ExtractionResult", "HintPolicy", "KeyExtractionError", "extract_keys",
    "merge_repositories", "unverified_repositories",
]
