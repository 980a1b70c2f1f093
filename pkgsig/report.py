"""
pkgsig report payload

Serializes a collection run into a plain dict, ready for JSON. Keys are
sorted by fingerprint then type and repositories keep their merged
order, so two runs over the same host produce identical output.
"""

import json
from typing import Any, Dict, Iterable, List

from pkgsig.signing.models import MAX_EXPIRATION_DATE, KeyStore, Repository
from pkgsig.signing.repositories import unverified_repositories

PAYLOAD_VERSION = 1


def build_payload(
    store: KeyStore,
    repositories: Iterable[Repository],
    errors: Iterable[Any] = (),
) -> Dict[str, Any]:
    """
    Build the signing metadata payload.

    Args:
        store: Populated key store
        repositories: Merged repository list
        errors: Source errors (objects with a ``to_dict`` method)

    Returns:
        Dict with signing_keys, repositories, unverified_repositories
        and errors
    """
    repositories = list(repositories)
    keys = sorted(store.values(), key=lambda k: (k.fingerprint, k.key_type))

    return {
        "version": PAYLOAD_VERSION,
        "signing_keys": [key.to_dict() for key in keys],
        "repositories": [repo.to_dict() for repo in repositories],
        "unverified_repositories": [repo.name for repo in unverified_repositories(repositories)],
        "errors": [error.to_dict() for error in errors],
    }


def to_json(payload: Dict[str, Any], indent: int = 2) -> str:
    return json.dumps(payload, indent=indent, sort_keys=False)


def summary_counts(payload: Dict[str, Any]) -> Dict[str, int]:
    """Headline numbers for display."""
    keys: List[Dict[str, Any]] = payload.get("signing_keys", [])
    return {
        "keys": len(keys),
        "expiring_keys": sum(1 for k in keys if k["expiration_date"] != MAX_EXPIRATION_DATE),
        "repositories": len(payload.get("repositories", [])),
        "unverified": len(payload.get("unverified_repositories", [])),
        "errors": len(payload.get("errors", [])),
    }
