#!/usr/bin/env python3
"""
pkgsig CLI Helpers

Shared formatting utilities for consistent CLI output across all commands.
Provides colored status messages and the key / repository tables.
"""

import json
from typing import Any, Dict, Iterable

import click

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pkgsig.signing.models import MAX_EXPIRATION_DATE, Repository, SigningKey

# Single shared Console instance for the entire CLI
console = Console()


def print_success(message: str) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a warning message with yellow triangle."""
    console.print(f"[yellow]⚠[/yellow]  {escape(message)}")


def print_error(message: str, fix_hint: str = "") -> None:
    """Print an error message with red X and optional fix hint."""
    console.print(f"[red]✗[/red] {escape(message)}")
    if fix_hint:
        console.print(f"  [white]Hint: {escape(fix_hint)}[/white]")


def format_flag(value: bool) -> str:
    """Return a Rich-markup yes/no for a repository flag."""
    return "[green]yes[/green]" if value else "[red]no[/red]"


def format_expiration(date: str) -> str:
    if date == MAX_EXPIRATION_DATE:
        return "[dim]never[/dim]"
    return escape(date)


def print_keys_table(keys: Iterable[SigningKey], title: str = "Signing Keys") -> None:
    """
    Print signing keys as a Rich table.

    Args:
        keys: Key summaries to display, in display order
        title: Table title
    """
    table = Table(title=title)
    table.add_column("Fingerprint", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Expires")
    table.add_column("Repositories")

    for key in keys:
        repos = escape(", ".join(repo.name for repo in key.repositories)) or "[dim]-[/dim]"
        table.add_row(
            escape(key.fingerprint),
            escape(key.key_type),
            format_expiration(key.expiration_date),
            repos,
        )

    console.print(table)


def print_repositories_table(repositories: Iterable[Repository], title: str = "Repositories") -> None:
    """Print repository verification settings as a Rich table."""
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Enabled")
    table.add_column("gpgcheck")
    table.add_column("repo_gpgcheck")

    for repo in repositories:
        table.add_row(
            escape(repo.name) or "[dim](unnamed)[/dim]",
            format_flag(repo.enabled),
            format_flag(repo.gpgcheck),
            format_flag(repo.repo_gpgcheck),
        )

    console.print(table)


def print_json(data: Dict[str, Any]) -> None:
    """Print a payload as plain JSON for machine consumption."""
    click.echo(json.dumps(data, indent=2))
