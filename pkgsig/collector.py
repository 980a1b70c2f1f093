"""
pkgsig collection run

Drives one audit pass from an AuditConfig: merges the repository sources,
reads each configured key file and feeds it to the key extractor, and
attaches to every key the repositories that reference its file.

Key files are processed one after another in configuration order, so the
KeyStore never sees concurrent writers. A file that is missing, unreadable
or holds no parsable key is recorded as a SourceError and the run goes on:
partial signing-key telemetry is preferred over none.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from pkgsig.config.models import AuditConfig, KeyringSource
from pkgsig.logging import resolve_logger, sanitize_for_log
from pkgsig.signing.models import KeyStore, Repository
from pkgsig.signing.readgpg import ExtractionResult, KeyExtractionError, extract_keys
from pkgsig.signing.repositories import merge_repositories

# Key files larger than this are not read; real keyrings are far smaller
MAX_KEY_FILE_SIZE = 16 * 1024 * 1024


@dataclass
class SourceError:
    """A key source that contributed nothing, or only partially."""
    source: str
    reason: str
    fatal: bool = True  # False when some blocks of the source did parse

    def to_dict(self) -> Dict[str, object]:
        return {"source": self.source, "reason": self.reason, "fatal": self.fatal}


@dataclass
class CollectionResult:
    """Everything one collection run produced."""
    store: KeyStore = field(default_factory=KeyStore)
    repositories: List[Repository] = field(default_factory=list)
    errors: List[SourceError] = field(default_factory=list)
    extractions: List[ExtractionResult] = field(default_factory=list)

    @property
    def failed_sources(self) -> List[SourceError]:
        return [e for e in self.errors if e.fatal]


def _read_key_file(path: Path) -> bytes:
    size = path.stat().st_size
    if size > MAX_KEY_FILE_SIZE:
        raise OSError(f"file too large ({size} bytes)")
    return path.read_bytes()


def _declared_repositories(
    source: KeyringSource,
    by_name: Dict[str, Repository],
    log: logging.Logger,
) -> List[Repository]:
    declared = []
    for name in source.repositories:
        repo = by_name.get(name)
        if repo is None:
            log.info(
                "Repository %s referenced by %s is not configured; reporting it with defaults",
                sanitize_for_log(name), sanitize_for_log(source.path),
            )
            repo = Repository(name=name)
        declared.append(repo)
    return declared


def collect(config: AuditConfig, logger: Optional[logging.Logger] = None) -> CollectionResult:
    """
    Run one collection pass.

    Args:
        config: Validated audit configuration
        logger: Logger for per-source diagnostics

    Returns:
        CollectionResult with the populated key store, merged repositories
        and per-source errors
    """
    log = resolve_logger(logger, __name__)
    result = CollectionResult()

    result.repositories = merge_repositories(
        [entry.to_repository() for entry in config.repositories.defaults],
        [entry.to_repository() for entry in config.repositories.effective],
    )
    by_name = {repo.name: repo for repo in result.repositories}

    for source in config.keyrings:
        path = Path(source.path)
        try:
            raw = _read_key_file(path)
        except OSError as e:
            reason = sanitize_for_log(str(e))
            log.warning("Cannot read key file %s: %s", sanitize_for_log(str(path)), reason)
            result.errors.append(SourceError(str(path), f"cannot read file: {reason}"))
            continue

        try:
            extraction = extract_keys(
                result.store,
                raw,
                source.type_hint,
                repositories=_declared_repositories(source, by_name, log),
                source=str(path),
                hint_policy=config.hint_policy,
                logger=log,
            )
        except KeyExtractionError as e:
            log.warning("%s", sanitize_for_log(str(e)))
            result.errors.append(SourceError(str(path), e.reason))
            continue

        result.extractions.append(extraction)
        if extraction.errors:
            result.errors.append(SourceError(
                str(path),
                f"{extraction.failed} of {extraction.blocks} key block(s) failed to parse",
                fatal=False,
            ))

    log.info(
        "Collected %d signing key(s) and %d repositories (%d source error(s))",
        len(result.store), len(result.repositories), len(result.errors),
    )
    return result
