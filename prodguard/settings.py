"""Guard settings resolved from runtime context properties."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from prodguard.check_catalog import list_check_descriptors
from prodguard.check_schema import EffectiveSeverity
from prodguard.context import RuntimeContext, flatten_properties, parse_bool
from prodguard.probe import DEFAULT_CONNECT_TIMEOUT_SECONDS, DEFAULT_TOTAL_TIMEOUT_SECONDS
from prodguard.storage import LOG_DIR


FORCE_KEY = "prodguard.force"
REPORT_ONLY_KEY = "prodguard.report-only"
PREMIUM_ENABLED_KEY = "prodguard.premium.enabled"
SEVERITIES_PREFIX = "prodguard.severities."
CONCURRENCY_KEY = "prodguard.concurrency"
PROBE_HOST_KEY = "prodguard.probe.host"
PROBE_PATH_KEY = "prodguard.probe.path"
HEADERS_PATH_KEY = "prodguard.headers.path"
CONNECT_TIMEOUT_KEY = "prodguard.probe.connect-timeout"
TOTAL_TIMEOUT_KEY = "prodguard.probe.timeout"
VERIFY_TLS_KEY = "prodguard.probe.verify-tls"
LOG_DIR_KEY = "prodguard.log-dir"

DEFAULT_PROBE_HOST = "localhost"
DEFAULT_PROBE_PATH = "/"
DEFAULT_HEADERS_PATH = "/actuator/health"
DEFAULT_CONCURRENCY = 8
MAX_CONCURRENCY = 64
LOG_DISABLED_VALUES = {"", "none", "off", "false"}


class SettingsValidationError(ValueError):
    """Raised when a prodguard.* property has an unusable value."""


def parse_severity(value: str, source: str = "severity") -> EffectiveSeverity:
    normalized = value.strip().upper()
    try:
        return EffectiveSeverity(normalized)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in EffectiveSeverity)
        raise SettingsValidationError(
            f"{source} has unsupported severity '{value}'. Supported values: {allowed}."
        ) from exc


def _positive_float(raw: str | None, key: str, default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        parsed = float(raw)
    except ValueError as exc:
        raise SettingsValidationError(f"{key} must be a number of seconds, got '{raw}'.") from exc
    if parsed <= 0:
        raise SettingsValidationError(f"{key} must be greater than zero.")
    return parsed


def _positive_int(raw: str | None, key: str, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        parsed = int(raw)
    except ValueError as exc:
        raise SettingsValidationError(f"{key} must be an integer, got '{raw}'.") from exc
    if parsed <= 0:
        raise SettingsValidationError(f"{key} must be greater than zero.")
    return min(parsed, MAX_CONCURRENCY)


def _request_path(raw: str | None, key: str, default: str) -> str:
    value = (raw or "").strip()
    if not value:
        return default
    if not value.startswith("/"):
        raise SettingsValidationError(f"{key} must start with '/', got '{value}'.")
    return value


@dataclass(frozen=True)
class ProbeTarget:
    host: str = DEFAULT_PROBE_HOST
    probe_path: str = DEFAULT_PROBE_PATH
    headers_path: str = DEFAULT_HEADERS_PATH

    def url(self, scheme: str, port: int, path: str) -> str:
        return f"{scheme}://{self.host}:{port}{path}"


def resolve_probe_target(ctx: RuntimeContext) -> ProbeTarget:
    """Host and request paths every probing check sends to."""

    return ProbeTarget(
        host=(ctx.get_property(PROBE_HOST_KEY) or "").strip() or DEFAULT_PROBE_HOST,
        probe_path=_request_path(ctx.get_property(PROBE_PATH_KEY), PROBE_PATH_KEY, DEFAULT_PROBE_PATH),
        headers_path=_request_path(ctx.get_property(HEADERS_PATH_KEY), HEADERS_PATH_KEY, DEFAULT_HEADERS_PATH),
    )


@dataclass(frozen=True)
class GuardSettings:
    force: bool = False
    report_only: bool = False
    premium_enabled: bool = False
    severities: Mapping[str, EffectiveSeverity] = field(default_factory=dict)
    concurrency: int = DEFAULT_CONCURRENCY
    target: ProbeTarget = field(default_factory=ProbeTarget)
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    total_timeout: float = DEFAULT_TOTAL_TIMEOUT_SECONDS
    verify_tls: bool = True
    log_dir: Path | None = LOG_DIR

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(code).strip().upper(): level for code, level in self.severities.items()})
        object.__setattr__(self, "severities", frozen)


def _severity_overrides(ctx: RuntimeContext, keys: list[str]) -> dict[str, EffectiveSeverity]:
    overrides: dict[str, EffectiveSeverity] = {}
    for key in keys:
        if not key.startswith(SEVERITIES_PREFIX):
            continue
        code = key[len(SEVERITIES_PREFIX):].strip().upper()
        raw = ctx.get_property(key)
        if not code or raw is None:
            continue
        overrides[code] = parse_severity(raw, source=key)
    return overrides


def _log_dir(raw: str | None) -> Path | None:
    if raw is None:
        return LOG_DIR
    if raw.strip().lower() in LOG_DISABLED_VALUES:
        return None
    return Path(raw.strip())


def _override_keys(ctx: RuntimeContext) -> list[str]:
    keys = [f"{SEVERITIES_PREFIX}{descriptor.code}" for descriptor in list_check_descriptors()]
    properties = getattr(ctx, "properties", None)
    if isinstance(properties, Mapping):
        keys.extend(key for key in sorted(properties) if key.startswith(SEVERITIES_PREFIX) and key not in keys)
    return keys


def load_settings(ctx: RuntimeContext, property_keys: list[str] | None = None) -> GuardSettings:
    """Resolve settings from context properties.

    Severity overrides are read from ``property_keys`` when given. Otherwise
    every catalog code is looked up through ``get_property``, plus any override
    keys a context exposing a ``properties`` mapping carries.
    """

    if property_keys is None:
        property_keys = _override_keys(ctx)

    return GuardSettings(
        force=parse_bool(ctx.get_property(FORCE_KEY)),
        report_only=parse_bool(ctx.get_property(REPORT_ONLY_KEY)),
        premium_enabled=parse_bool(ctx.get_property(PREMIUM_ENABLED_KEY)),
        severities=_severity_overrides(ctx, property_keys),
        concurrency=_positive_int(ctx.get_property(CONCURRENCY_KEY), CONCURRENCY_KEY, DEFAULT_CONCURRENCY),
        target=resolve_probe_target(ctx),
        connect_timeout=_positive_float(
            ctx.get_property(CONNECT_TIMEOUT_KEY), CONNECT_TIMEOUT_KEY, DEFAULT_CONNECT_TIMEOUT_SECONDS
        ),
        total_timeout=_positive_float(
            ctx.get_property(TOTAL_TIMEOUT_KEY), TOTAL_TIMEOUT_KEY, DEFAULT_TOTAL_TIMEOUT_SECONDS
        ),
        verify_tls=ctx.get_property(VERIFY_TLS_KEY) is None or parse_bool(ctx.get_property(VERIFY_TLS_KEY)),
        log_dir=_log_dir(ctx.get_property(LOG_DIR_KEY)),
    )


def load_properties_file(path: str | os.PathLike[str]) -> dict[str, str]:
    """Load a JSON configuration file into flat dotted property keys."""

    file_path = Path(path)
    if not file_path.is_file():
        raise SettingsValidationError(f"Configuration file not found: {file_path.resolve()}")

    with file_path.open("r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise SettingsValidationError(f"Invalid JSON in {file_path}: {exc.msg}") from exc

    if not isinstance(payload, dict):
        raise SettingsValidationError(f"{file_path}: top-level json must be an object.")
    return flatten_properties(payload)
