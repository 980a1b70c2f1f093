"""pkgsig configuration module."""

from .loader import ConfigError, load_config, load_repository_list, parse_config
from .models import AuditConfig, KeyringSource, RepositoryEntry, RepositorySources

__all__ = [
    "ConfigError", "load_config", "load_repository_list", "parse_config",
    "AuditConfig", "KeyringSource", "RepositoryEntry", "RepositorySources",
]
