"""
Load and validate the audit configuration file.

The file is YAML; an empty file is a valid configuration that audits
nothing.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import ValidationError

from pkgsig.config.models import AuditConfig, RepositoryEntry
from pkgsig.signing.models import Repository

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the audit configuration cannot be loaded."""

    def __init__(self, reason: str, path: str = ""):
        self.reason = reason
        self.path = path
        where = f" {path}" if path else ""
        super().__init__(f"Invalid configuration{where}: {reason}")


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location or '<root>'}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)


def _load_yaml(text: str, path: str = "") -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML syntax error: {e}", path) from e


def parse_config(text: str, path: str = "") -> AuditConfig:
    """
    Parse audit configuration from YAML text.

    Raises:
        ConfigError: On YAML syntax errors or schema violations
    """
    data = _load_yaml(text, path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("top level must be a mapping", path)

    try:
        return AuditConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e), path) from e


def load_config(path: Union[str, Path]) -> AuditConfig:
    """Read and validate the audit configuration at ``path``."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read file: {e}", str(path)) from e

    config = parse_config(text, str(path))
    logger.debug(
        "Loaded %s: %d keyring(s), %d default and %d effective repositories",
        path, len(config.keyrings),
        len(config.repositories.defaults), len(config.repositories.effective),
    )
    return config


def load_repository_list(path: Union[str, Path]) -> List[Repository]:
    """
    Read a YAML/JSON list of repository records.

    Accepts either a bare list or a mapping with a "repositories" key.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read file: {e}", str(path)) from e

    data = _load_yaml(text, str(path))
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("repositories", [])
    if not isinstance(data, list):
        raise ConfigError("expected a list of repositories", str(path))

    try:
        return [RepositoryEntry.model_validate(item).to_repository() for item in data]
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e), str(path)) from e
