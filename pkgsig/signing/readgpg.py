"""
pkgsig key extraction

Summarizes OpenPGP public keys found in raw key material and merges the
summaries into a KeyStore.

- Split: concatenated armored blocks are separated by armor markers
- Parse: each block is parsed with PGPy, one summary per primary key
- Classify: algorithm family from the key packet, or the caller's hint
- Expire: ISO date of the key expiration, or the never-expires sentinel

A block that fails to parse is logged and skipped. Only when no block of
an input could be parsed does extraction raise.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timezone
from enum import Enum
from typing import Iterable, List, Optional, Union

import pgpy
from pgpy.constants import PubKeyAlgorithm
from pgpy.types import Armorable

from pkgsig.logging import resolve_logger, sanitize_for_log
from pkgsig.signing.armor import END_MARKER, has_armor, is_probably_binary, split_armored_blocks
from pkgsig.signing.models import (
    MAX_EXPIRATION_DATE,
    UNKNOWN_KEY_TYPE,
    KeyStore,
    KeyType,
    Repository,
    SigningKey,
)

_ALGORITHM_FAMILIES = {
    PubKeyAlgorithm.RSAEncryptOrSign: KeyType.RSA,
    PubKeyAlgorithm.RSAEncrypt: KeyType.RSA,
    PubKeyAlgorithm.RSASign: KeyType.RSA,
    PubKeyAlgorithm.DSA: KeyType.DSA,
    PubKeyAlgorithm.ECDSA: KeyType.ECDSA,
    PubKeyAlgorithm.EdDSA: KeyType.EDDSA,
    PubKeyAlgorithm.ECDH: KeyType.ECDH,
    PubKeyAlgorithm.ElGamal: KeyType.ELGAMAL,
    PubKeyAlgorithm.FormerlyElGamalEncryptOrSign: KeyType.ELGAMAL,
}


class HintPolicy(str, Enum):
    """How the caller's type hint relates to the parsed algorithm."""
    PARSER = "parser"   # parsed algorithm wins, hint is the fallback
    HINT = "hint"       # non-empty hint wins, parsed algorithm is the fallback


class BlockParseError(Exception):
    """Raised when a single key block cannot be summarized."""

    def __init__(self, source: str, index: int, reason: str):
        self.source = source
        self.index = index
        self.reason = reason
        super().__init__(f"Failed to parse key block {index} from {source}: {reason}")


class KeyExtractionError(Exception):
    """Raised when no key block of an input could be parsed."""

    def __init__(self, source: str, reason: str, errors: Optional[List[BlockParseError]] = None):
        self.source = source
        self.reason = reason
        self.errors = list(errors or [])
        super().__init__(f"No signing keys extracted from {source}: {reason}")


@dataclass
class ExtractionResult:
    """Outcome of one extract_keys call."""
    source: str
    blocks: int = 0
    keys: List[SigningKey] = field(default_factory=list)
    errors: List[BlockParseError] = field(default_factory=list)

    @property
    def parsed(self) -> int:
        return self.blocks - len(self.errors)

    @property
    def failed(self) -> int:
        return len(self.errors)


def classify_algorithm(algorithm) -> Optional[KeyType]:
    """Map a PGPy public-key algorithm to its family, None if unknown."""
    try:
        return _ALGORITHM_FAMILIES.get(PubKeyAlgorithm(algorithm))
    except (ValueError, TypeError):
        return None


def resolve_key_type(
    parsed: Optional[KeyType],
    type_hint: Optional[str],
    hint_policy: HintPolicy = HintPolicy.PARSER,
) -> str:
    """
    Pick the reported key type from the parsed family and the hint.

    Args:
        parsed: Family derived from the key packet, if any
        type_hint: Caller-supplied classification
        hint_policy: Which of the two wins when both are present

    Returns:
        Key type string, "unknown" when neither is available
    """
    hint = (type_hint or "").strip()
    parsed_value = parsed.value if parsed is not None else ""

    if HintPolicy(hint_policy) is HintPolicy.HINT:
        return hint or parsed_value or UNKNOWN_KEY_TYPE
    return parsed_value or hint or UNKNOWN_KEY_TYPE


def _expiration_date(key: pgpy.PGPKey) -> str:
    expires_at = key.expires_at
    # A zero key lifetime means the key never expires
    if expires_at is None or expires_at <= key.created:
        return MAX_EXPIRATION_DATE
    if expires_at.tzinfo is not None:
        expires_at = expires_at.astimezone(timezone.utc)
    return expires_at.date().isoformat()


def canonical_fingerprint(key: pgpy.PGPKey) -> str:
    """Uppercase hex fingerprint without separators."""
    return str(key.fingerprint).replace(" ", "").upper()


def summarize_key(
    key: pgpy.PGPKey,
    type_hint: Optional[str] = None,
    hint_policy: HintPolicy = HintPolicy.PARSER,
) -> SigningKey:
    """Build the SigningKey summary of one parsed PGPy key."""
    return SigningKey(
        fingerprint=canonical_fingerprint(key),
        key_type=resolve_key_type(classify_algorithm(key.key_algorithm), type_hint, hint_policy),
        expiration_date=_expiration_date(key),
    )


def _parse_block(block: Union[str, bytes]) -> List[pgpy.PGPKey]:
    """Parse one armored block (or binary stream) into its primary keys."""
    if isinstance(block, str):
        if END_MARKER not in block:
            raise ValueError("armor END marker missing")
        if not Armorable.is_armor(block):
            raise ValueError("malformed armor framing")

    parsed = pgpy.PGPKey.from_blob(block)
    if isinstance(parsed, tuple):
        key, others = parsed
    else:
        key, others = parsed, {}

    if key.fingerprint is None:
        raise ValueError("no public key packet found")

    keys = [key]
    for other in others.values():
        if other.is_primary and other.fingerprint != key.fingerprint:
            keys.append(other)
    return keys


def extract_keys(
    store: KeyStore,
    raw: Union[bytes, bytearray, str],
    type_hint: Optional[str],
    repositories: Optional[Iterable[Repository]] = None,
    source: str = "<memory>",
    hint_policy: HintPolicy = HintPolicy.PARSER,
    logger: Optional[logging.Logger] = None,
) -> ExtractionResult:
    """
    Summarize every public key in ``raw`` and merge it into ``store``.

    Args:
        store: Key store to populate (mutated in place)
        raw: Key material, armored blocks or a binary key stream
        type_hint: Classification used when the algorithm is undetermined
        repositories: Repositories declaring reliance on these keys
        source: Name of the input, used in logs and errors
        hint_policy: Precedence between parsed algorithm and hint
        logger: Logger to report block failures to

    Returns:
        ExtractionResult listing the stored keys and per-block errors

    Raises:
        KeyExtractionError: If the input holds no parsable key block
    """
    log = resolve_logger(logger, __name__)
    repositories = list(repositories or [])
    result = ExtractionResult(source=source)

    if has_armor(raw):
        blocks = split_armored_blocks(raw)
    elif is_probably_binary(raw):
        blocks = [bytes(raw)]
    else:
        blocks = []

    result.blocks = len(blocks)
    if not blocks:
        raise KeyExtractionError(source, "no OpenPGP key material found")

    summaries = []
    for index, block in enumerate(blocks):
        try:
            block_summaries = [summarize_key(key, type_hint, hint_policy) for key in _parse_block(block)]
            summaries.extend(block_summaries)
        except Exception as e:  # PGPy raises many error types on corrupt packets
            error = BlockParseError(source, index, str(e) or e.__class__.__name__)
            result.errors.append(error)
            log.warning(
                "Skipping key block %d from %s: %s",
                index, sanitize_for_log(source), sanitize_for_log(error.reason),
            )

    if result.failed == result.blocks:
        raise KeyExtractionError(
            source,
            f"all {result.blocks} key block(s) failed to parse",
            result.errors,
        )

    for summary in summaries:
        stored = store.add(summary, repositories)
        if all(k.identity != stored.identity for k in result.keys):
            result.keys.append(stored)
        log.debug(
            "Recorded key %s (%s, expires %s) from %s",
            stored.fingerprint, stored.key_type, stored.expiration_date,
            sanitize_for_log(source),
        )

    return result
