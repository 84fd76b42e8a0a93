"""CLI parser construction for the prod-guard command line host."""

from __future__ import annotations

import argparse

from prodguard.check_schema import CODE_PATTERN, EffectiveSeverity


def positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be an integer.") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be greater than zero.")
    return parsed


def valid_port(value: str) -> int:
    port = positive_int(value)
    if port > 65535:
        raise argparse.ArgumentTypeError("Port must be between 1 and 65535.")
    return port


def property_pair(value: str) -> tuple[str, str]:
    key, sep, raw = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError("Properties must look like key=value.")
    return key.strip(), raw.strip()


def severity_override(value: str) -> tuple[str, str]:
    code, raw = property_pair(value)
    code = code.upper()
    if not CODE_PATTERN.match(code):
        raise argparse.ArgumentTypeError(f"Unknown check code format: {code}")
    level = raw.upper()
    if level not in {item.value for item in EffectiveSeverity}:
        allowed = ", ".join(item.value for item in EffectiveSeverity)
        raise argparse.ArgumentTypeError(f"Severity must be one of: {allowed}.")
    return code, level


def _add_verify_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--port",
        type=valid_port,
        default=None,
        help="Local port of the running service. Omit for non-web processes.",
    )
    parser.add_argument(
        "--profile",
        action="append",
        default=[],
        help="Active environment profile (repeatable). 'prod'/'production' enables checks.",
    )
    parser.add_argument(
        "--property",
        action="append",
        type=property_pair,
        default=[],
        help="Configuration property key=value visible to checks (repeatable).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON file of configuration properties (nested objects become dotted keys).",
    )
    parser.add_argument(
        "--severity",
        action="append",
        type=severity_override,
        default=[],
        help="Severity override CODE=ERROR|WARN|INFO|DISABLED (repeatable).",
    )
    parser.add_argument("--force", action="store_true", help="Run checks outside production profiles.")
    parser.add_argument(
        "--report-only",
        action="store_true",
        help="Log blocking findings as warnings instead of failing.",
    )
    parser.add_argument("--premium", action="store_true", help="Register PREMIUM (network) checks.")
    parser.add_argument("--host", default=None, help="Host used to reach the local service (default: localhost).")
    parser.add_argument("--probe-path", default=None, help="Request path for effective checks (default: /).")
    parser.add_argument(
        "--headers-path",
        default=None,
        help="Request path for the aggregate headers check (default: /actuator/health).",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip TLS certificate verification for local HTTPS probes.",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Do not append to the framework log file.",
    )


def build_root_parser(*, project_name: str, version: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prod-guard.py",
        description=f"{project_name} v{version} startup production-readiness verifier.",
    )
    parser.add_argument(
        "--about",
        dest="about_flag",
        action="store_true",
        help="Show project description and exit.",
    )
    subparsers = parser.add_subparsers(dest="command")

    verify_parser = subparsers.add_parser(
        "verify",
        aliases=["run"],
        help="Run one verification pass against a locally running service.",
    )
    _add_verify_args(verify_parser)

    checks_parser = subparsers.add_parser("checks", help="List the check catalog.")
    checks_parser.add_argument(
        "--tier",
        choices=["all", "free", "premium"],
        default="all",
        help="Filter catalog by tier.",
    )
    return parser
