"""
Data model for package-signing metadata.

SigningKey and Repository records, plus the KeyStore that accumulates
keys across one collection run.

The store is a plain mapping without locks. Callers that feed it from
several threads must serialize insert/merge calls themselves.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union

# Recorded for keys that never expire, so dates stay comparable as strings
MAX_EXPIRATION_DATE = "9999-12-31"

UNKNOWN_KEY_TYPE = "unknown"

# Delimiter used when an identity is rendered as a single string
IDENTITY_DELIMITER = "|"


class KeyType(str, Enum):
    """Public-key algorithm families reported for signing keys."""
    RSA = "RSA"
    DSA = "DSA"
    ECDSA = "ECDSA"
    EDDSA = "EdDSA"
    ECDH = "ECDH"
    ELGAMAL = "ElGamal"


@dataclass
class Repository:
    """Verification settings of one configured package source."""
    name: str
    enabled: bool = True
    gpgcheck: bool = False
    repo_gpgcheck: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "gpgcheck": self.gpgcheck,
            "repo_gpgcheck": self.repo_gpgcheck,
        }


class KeyIdentity(NamedTuple):
    """Deduplication identity of a signing key."""
    fingerprint: str
    key_type: str

    @property
    def composite(self) -> str:
        return f"{self.fingerprint}{IDENTITY_DELIMITER}{self.key_type}"


@dataclass
class SigningKey:
    """Summary of one OpenPGP public key."""
    fingerprint: str
    key_type: str
    expiration_date: str = MAX_EXPIRATION_DATE
    repositories: List[Repository] = field(default_factory=list)

    @property
    def identity(self) -> KeyIdentity:
        return KeyIdentity(self.fingerprint, self.key_type)

    @property
    def expires(self) -> bool:
        return self.expiration_date != MAX_EXPIRATION_DATE

    def add_repositories(self, repositories: Iterable[Repository]) -> int:
        """
        Append repositories not yet associated with this key.

        Association is by repository name; a name already present keeps
        its existing record.

        Returns:
            Number of repositories appended
        """
        known = {repo.name for repo in self.repositories}
        added = 0
        for repo in repositories:
            if repo.name in known:
                continue
            self.repositories.append(repo)
            known.add(repo.name)
            added += 1
        return added

    def to_dict(self) -> Dict[str, object]:
        return {
            "fingerprint": self.fingerprint,
            "key_type": self.key_type,
            "expiration_date": self.expiration_date,
            "repositories": [repo.to_dict() for repo in self.repositories],
        }


IdentityLike = Union[KeyIdentity, Tuple[str, str]]


class KeyStore:
    """
    Signing keys discovered during one collection pass.

    Maps KeyIdentity -> SigningKey in insertion order. Re-observing a
    key (same fingerprint and type) keeps the first record and only
    extends its repository associations.
    """

    def __init__(self) -> None:
        self._keys: Dict[KeyIdentity, SigningKey] = {}

    def add(self, key: SigningKey, repositories: Iterable[Repository] = ()) -> SigningKey:
        """
        Insert a key, or merge it into the record already stored.

        Args:
            key: Freshly summarized key
            repositories: Repositories declaring reliance on this key

        Returns:
            The record held by the store for the key's identity
        """
        stored = self._keys.get(key.identity)
        if stored is None:
            stored = key
            self._keys[key.identity] = stored
        else:
            stored.add_repositories(key.repositories)
        stored.add_repositories(repositories)
        return stored

    def associate(self, identity: IdentityLike, repositories: Iterable[Repository]) -> int:
        """Append repositories to a stored key. Raises KeyError if absent."""
        return self._keys[KeyIdentity(*identity)].add_repositories(repositories)

    def get(self, identity: IdentityLike, default: Optional[SigningKey] = None) -> Optional[SigningKey]:
        return self._keys.get(KeyIdentity(*identity), default)

    def values(self) -> List[SigningKey]:
        return list(self._keys.values())

    def items(self) -> List[Tuple[KeyIdentity, SigningKey]]:
        return list(self._keys.items())

    def __getitem__(self, identity: IdentityLike) -> SigningKey:
        return self._keys[KeyIdentity(*identity)]

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, tuple) or len(identity) != 2:
            return False
        return KeyIdentity(*identity) in self._keys

    def __iter__(self) -> Iterator[KeyIdentity]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"KeyStore({len(self._keys)} keys)"
