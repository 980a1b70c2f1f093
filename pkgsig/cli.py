#!/usr/bin/env python3
"""
pkgsig CLI - Is this host verifying the packages it installs?

Usage:
    pkgsig keys FILE... [--type-hint RSA] [--hint-policy parser|hint] [--json]
    pkgsig repos DEFAULTS EFFECTIVE [--json]
    pkgsig audit CONFIG [--json] [--output FILE] [--strict]
"""

import sys
from pathlib import Path
from typing import Tuple

import click

from pkgsig import __version__
from pkgsig.cli_helpers import (
    console,
    print_error,
    print_json,
    print_keys_table,
    print_repositories_table,
    print_success,
    print_warning,
)
from pkgsig.collector import collect
from pkgsig.config import ConfigError, load_config, load_repository_list
from pkgsig.logging import configure_cli_logging
from pkgsig.report import build_payload, summary_counts, to_json
from pkgsig.signing.models import KeyStore
from pkgsig.signing.readgpg import HintPolicy, KeyExtractionError, extract_keys
from pkgsig.signing.repositories import merge_repositories, unverified_repositories

_POLICY_CHOICES = click.Choice([p.value for p in HintPolicy], case_sensitive=False)


@click.group()
@click.version_option(version=__version__, prog_name="pkgsig")
@click.option("-v", "--verbose", is_flag=True, help="Log debug diagnostics to stderr.")
def main(verbose: bool):
    """pkgsig - package signing key and repository GPG check audit."""
    configure_cli_logging(verbose)


@main.command(
    epilog="""\b
Examples:
  pkgsig keys /etc/pki/rpm-gpg/RPM-GPG-KEY-redhat-release
  pkgsig keys --json --type-hint RSA keys/*.asc
"""
)
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--type-hint", default="", help="Key type used when the algorithm cannot be determined.")
@click.option("--hint-policy", type=_POLICY_CHOICES, default=HintPolicy.PARSER.value, show_default=True,
              help="Whether the parsed algorithm or the hint wins.")
@click.option("--json", "as_json", is_flag=True, help="Output JSON.")
def keys(files: Tuple[Path, ...], type_hint: str, hint_policy: str, as_json: bool):
    """Summarize the OpenPGP public keys in key files."""
    store = KeyStore()
    failures = []

    for path in files:
        try:
            raw = path.read_bytes()
        except OSError as e:
            failures.append((str(path), f"cannot read file: {e}"))
            continue
        try:
            result = extract_keys(store, raw, type_hint, source=str(path),
                                  hint_policy=HintPolicy(hint_policy.lower()))
        except KeyExtractionError as e:
            failures.append((str(path), e.reason))
            continue
        for error in result.errors:
            failures.append((str(path), f"block {error.index}: {error.reason}"))

    if as_json:
        print_json({
            "signing_keys": [key.to_dict() for key in store.values()],
            "errors": [{"source": source, "reason": reason} for source, reason in failures],
        })
    else:
        if len(store):
            print_keys_table(store.values())
        for source, reason in failures:
            print_warning(f"{source}: {reason}")

    if not len(store):
        if not as_json:
            print_error("No signing keys could be extracted",
                        "Check that the files contain exported OpenPGP public keys.")
        sys.exit(1)


@main.command()
@click.argument("defaults", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("effective", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output JSON.")
def repos(defaults: Path, effective: Path, as_json: bool):
    """Merge two repository lists; EFFECTIVE settings override DEFAULTS."""
    try:
        merged = merge_repositories(load_repository_list(defaults), load_repository_list(effective))
    except ConfigError as e:
        raise click.UsageError(str(e))

    if as_json:
        print_json({
            "repositories": [repo.to_dict() for repo in merged],
            "unverified_repositories": [repo.name for repo in unverified_repositories(merged)],
        })
        return

    print_repositories_table(merged)
    for repo in unverified_repositories(merged):
        print_warning(f"{repo.name}: enabled without gpgcheck")


@main.command()
@click.argument("config_path", metavar="CONFIG", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output the report as JSON.")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path),
              help="Also write the JSON report to this file.")
@click.option("--strict", is_flag=True, help="Exit non-zero if any key source failed.")
def audit(config_path: Path, as_json: bool, output: Path, strict: bool):
    """Run a full audit described by a YAML config file."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.UsageError(str(e))

    result = collect(config)
    payload = build_payload(result.store, result.repositories, result.errors)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(to_json(payload) + "\n", encoding="utf-8")

    if as_json:
        print_json(payload)
    else:
        counts = summary_counts(payload)
        console.print()
        console.print("[bold cyan]pkgsig audit[/bold cyan]")
        console.print("[dim]" + "-" * 50 + "[/dim]")
        if len(result.store):
            print_keys_table(result.store.values())
        if result.repositories:
            print_repositories_table(result.repositories)
        for name in payload["unverified_repositories"]:
            print_warning(f"{name}: enabled without gpgcheck")
        for error in result.errors:
            print_warning(f"{error.source}: {error.reason}")
        print_success(
            f"{counts['keys']} key(s), {counts['repositories']} repositories, "
            f"{counts['unverified']} unverified"
        )
        if output:
            print_success(f"Report written to {output}")

    if strict and result.failed_sources:
        sys.exit(1)
    if config.keyrings and not len(result.store):
        sys.exit(1)


if __name__ == "__main__":
    main()
