"""
Pydantic models for pkgsig audit configuration.

These models define the schema of the audit YAML file. They provide:
- Type-safe configuration loading with automatic validation
- Coercion of yum/dnf style flags ("1", "no", ...) to booleans
- Human-readable error messages for invalid configuration
"""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field, field_validator, model_validator

from pkgsig.signing.readgpg import HintPolicy
from pkgsig.signing.repositories import parse_flag
from pkgsig.signing.models import Repository


# ============================================================================
# Repository Sources
# ============================================================================


class RepositoryEntry(BaseModel):
    """One repository record as written in the config file."""
    name: str
    enabled: bool = True
    gpgcheck: bool = False
    repo_gpgcheck: bool = False

    model_config = {"extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def accept_repoid(cls, data: Any) -> Any:
        """Allow "repoid" as an alias of "name", as in .repo files."""
        if isinstance(data, dict) and "name" not in data and "repoid" in data:
            data = dict(data)
            data["name"] = data.pop("repoid")
        return data

    @field_validator("enabled", mode="before")
    @classmethod
    def coerce_enabled(cls, v: Any) -> bool:
        return parse_flag(v, True)

    @field_validator("gpgcheck", "repo_gpgcheck", mode="before")
    @classmethod
    def coerce_checks(cls, v: Any) -> bool:
        return parse_flag(v, False)

    def to_repository(self) -> Repository:
        return Repository(
            name=self.name,
            enabled=self.enabled,
            gpgcheck=self.gpgcheck,
            repo_gpgcheck=self.repo_gpgcheck,
        )


class RepositorySources(BaseModel):
    """Repository settings from the two configuration sources."""
    defaults: List[RepositoryEntry] = Field(default_factory=list)
    effective: List[RepositoryEntry] = Field(default_factory=list)


# ============================================================================
# Keyring Sources
# ============================================================================


class KeyringSource(BaseModel):
    """A key file to summarize and the repositories that trust it."""
    path: str
    type_hint: str = ""
    repositories: List[str] = Field(default_factory=list)

    @field_validator("path")
    @classmethod
    def path_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("keyring path must not be empty")
        return v


# ============================================================================
# Root Model
# ============================================================================


class AuditConfig(BaseModel):
    """Root model of the audit configuration file."""
    hint_policy: HintPolicy = HintPolicy.PARSER
    keyrings: List[KeyringSource] = Field(default_factory=list)
    repositories: RepositorySources = Field(default_factory=RepositorySources)

    model_config = {"extra": "forbid"}

    @field_validator("hint_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v
