"""Check catalog: discovery, validation and binding of check modules."""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from typing import Any

from prodguard.check_schema import Check, CheckDescriptor, CheckTier
from prodguard.probe import HttpProbe


CHECK_PACKAGE = "prodguard_checks"


class CatalogError(RuntimeError):
    """Raised when a check module is malformed or a code is registered twice."""


def _iter_check_module_names() -> list[str]:
    package = importlib.import_module(CHECK_PACKAGE)
    names: list[str] = []
    for module_info in pkgutil.iter_modules(package.__path__):
        if module_info.ispkg:
            continue
        if module_info.name.startswith("_"):
            continue
        names.append(module_info.name)
    return sorted(names)


def _load_check_module(module_name: str):
    try:
        return importlib.import_module(f"{CHECK_PACKAGE}.{module_name}")
    except Exception as exc:
        raise CatalogError(f"Check module '{module_name}' failed to import: {exc}") from exc


def _entry_for(module_name: str) -> tuple[CheckDescriptor, Any]:
    module = _load_check_module(module_name)
    descriptor = getattr(module, "DESCRIPTOR", None)
    if not isinstance(descriptor, CheckDescriptor):
        raise CatalogError(f"Check module '{module_name}' has no CheckDescriptor named DESCRIPTOR.")
    evaluate_fn = getattr(module, "evaluate", None)
    if evaluate_fn is None or not inspect.iscoroutinefunction(evaluate_fn):
        raise CatalogError(f"Check module '{module_name}' has no async evaluate(ctx, probe).")
    return descriptor, evaluate_fn


def _catalog_entries() -> list[tuple[CheckDescriptor, Any]]:
    entries: list[tuple[CheckDescriptor, Any]] = []
    owners: dict[str, str] = {}
    for module_name in _iter_check_module_names():
        descriptor, evaluate_fn = _entry_for(module_name)
        if descriptor.code in owners:
            raise CatalogError(
                f"Check code {descriptor.code} is declared by both "
                f"'{owners[descriptor.code]}' and '{module_name}'."
            )
        owners[descriptor.code] = module_name
        entries.append((descriptor, evaluate_fn))
    return sorted(entries, key=lambda item: item[0].code)


def list_check_descriptors(tier: CheckTier | None = None) -> list[CheckDescriptor]:
    return [descriptor for descriptor, _ in _catalog_entries() if tier is None or descriptor.tier is tier]


def describe_checks(tier: CheckTier | None = None) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for descriptor in list_check_descriptors(tier):
        rows.append(
            {
                "code": descriptor.code,
                "title": descriptor.title,
                "severity": descriptor.default_severity.value,
                "tier": descriptor.tier.value,
                "description": " ".join(descriptor.description.split()),
            }
        )
    return rows


def build_checks(probe: HttpProbe, *, premium_enabled: bool = False) -> list[Check]:
    """Bind every enabled check to ``probe``, ordered by code.

    FREE checks are always registered; PREMIUM checks only when enabled.
    """

    checks: list[Check] = []
    for descriptor, evaluate_fn in _catalog_entries():
        if descriptor.tier is CheckTier.PREMIUM and not premium_enabled:
            continue
        checks.append(Check(descriptor=descriptor, evaluate_fn=evaluate_fn, probe=probe))
    return checks
