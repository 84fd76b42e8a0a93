"""Command line host for prod-guard.

The CLI stands in for an application framework: it assembles a runtime
context from flags and files, then runs one verification pass.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from prodguard.check_catalog import CatalogError, describe_checks
from prodguard.check_schema import CheckTier
from prodguard.cli_parsers import build_root_parser as _build_root_parser
from prodguard.colors import Colors, c
from prodguard.context import StaticRuntimeContext
from prodguard.metadata import PROJECT_NAME, VERSION, about_block
from prodguard.output import display_catalog, display_outcome
from prodguard.runner import build_runner
from prodguard.settings import (
    FORCE_KEY,
    HEADERS_PATH_KEY,
    LOG_DIR_KEY,
    PREMIUM_ENABLED_KEY,
    PROBE_HOST_KEY,
    PROBE_PATH_KEY,
    REPORT_ONLY_KEY,
    SEVERITIES_PREFIX,
    VERIFY_TLS_KEY,
    SettingsValidationError,
    load_properties_file,
    load_settings,
)


EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
VERIFY_COMMANDS = {"verify", "run"}


def build_root_parser() -> argparse.ArgumentParser:
    return _build_root_parser(project_name=PROJECT_NAME, version=VERSION)


def build_properties(args: argparse.Namespace) -> dict[str, str]:
    """Merge config file, --property pairs and dedicated flags; later wins."""

    properties: dict[str, str] = {}
    if args.config:
        properties.update(load_properties_file(args.config))
    for key, value in args.property:
        properties[key] = value
    for code, level in args.severity:
        properties[f"{SEVERITIES_PREFIX}{code}"] = level

    flag_values = {
        FORCE_KEY: "true" if args.force else None,
        REPORT_ONLY_KEY: "true" if args.report_only else None,
        PREMIUM_ENABLED_KEY: "true" if args.premium else None,
        VERIFY_TLS_KEY: "false" if args.insecure else None,
        LOG_DIR_KEY: "none" if args.no_log_file else None,
        PROBE_HOST_KEY: args.host,
        PROBE_PATH_KEY: args.probe_path,
        HEADERS_PATH_KEY: args.headers_path,
    }
    for key, value in flag_values.items():
        if value is not None:
            properties[key] = value
    return properties


def build_context(args: argparse.Namespace) -> StaticRuntimeContext:
    return StaticRuntimeContext(
        local_port=args.port,
        properties=build_properties(args),
        active_profiles=tuple(args.profile),
    )


async def _run_verify(args: argparse.Namespace) -> int:
    try:
        ctx = build_context(args)
        settings = load_settings(ctx)
        runner = build_runner(ctx, settings=settings)
    except SettingsValidationError as exc:
        print(c(f"[!] Invalid configuration: {exc}", Colors.RED))
        return EXIT_USAGE
    except CatalogError as exc:
        print(c(f"[!] Check catalog error: {exc}", Colors.RED))
        return EXIT_FAILURE

    outcome = await runner.execute(ctx)
    display_outcome(outcome)
    return EXIT_FAILURE if outcome.aborted else EXIT_SUCCESS


def _run_checks(args: argparse.Namespace) -> int:
    tier = None if args.tier == "all" else CheckTier(args.tier.upper())
    try:
        display_catalog(describe_checks(tier))
    except CatalogError as exc:
        print(c(f"[!] Check catalog error: {exc}", Colors.RED))
        return EXIT_FAILURE
    return EXIT_SUCCESS


async def run(argv: Sequence[str] | None = None) -> int:
    parser = build_root_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.about_flag:
        if args.command is not None:
            print(c("Global flag --about cannot be combined with a command.", Colors.RED))
            return EXIT_USAGE
        print(c(about_block(), Colors.CYAN))
        return EXIT_SUCCESS

    if args.command in VERIFY_COMMANDS:
        return await _run_verify(args)
    if args.command == "checks":
        return _run_checks(args)

    parser.print_help()
    return EXIT_USAGE


def main() -> int:
    try:
        return asyncio.run(run())
    except KeyboardInterrupt:
        return 130
