"""
Repository GPG check reconciliation.

Repository settings usually come from two places: distribution defaults
and the configuration actually in effect on the host. The effective
record wins, while the report keeps a stable order between runs.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List

from pkgsig.signing.models import Repository

_TRUE_VALUES = {"1", "yes", "true", "on"}
_FALSE_VALUES = {"0", "no", "false", "off", ""}


def merge_repositories(
    first: Iterable[Repository],
    second: Iterable[Repository],
) -> List[Repository]:
    """
    Merge two repository lists, the second one being authoritative.

    - Repositories of ``first`` keep their relative order
    - Repositories only in ``second`` follow, in their relative order
    - A name present in both takes the whole record from ``second``,
      at the position it holds in ``first``

    Records are matched by name only and are never validated.

    Args:
        first: Default / lower precedence settings
        second: Effective / higher precedence settings

    Returns:
        New list with one record per distinct name
    """
    merged: Dict[str, Repository] = {}
    for repo in first:
        merged[repo.name] = repo
    for repo in second:
        merged[repo.name] = repo
    return list(merged.values())


def parse_flag(value: Any, default: bool = False) -> bool:
    """
    Coerce a yum/dnf style boolean option.

    Accepts bools, ints and the strings dnf understands ("1"/"0",
    "yes"/"no", "true"/"false", "on"/"off"). Unrecognized values fall
    back to ``default``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def unverified_repositories(repositories: Iterable[Repository]) -> List[Repository]:
    """Enabled repositories that install packages without checking signatures."""
    return [repo for repo in repositories if repo.enabled and not repo.gpgcheck]
