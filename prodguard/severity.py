"""Effective severity resolution from descriptor defaults and overrides."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from prodguard.check_schema import CheckResult, EffectiveSeverity
from prodguard.settings import GuardSettings


class SeverityResolver:
    """Map a result to the severity actually applied to it.

    The override table is copied into a read-only mapping on construction, so
    one resolver can be shared by concurrently finishing checks.
    """

    def __init__(self, overrides: Mapping[str, EffectiveSeverity] | None = None) -> None:
        self._overrides = MappingProxyType(
            {str(code).strip().upper(): level for code, level in (overrides or {}).items()}
        )

    @classmethod
    def from_settings(cls, settings: GuardSettings) -> "SeverityResolver":
        return cls(settings.severities)

    @property
    def overrides(self) -> Mapping[str, EffectiveSeverity]:
        return self._overrides

    def resolve(self, result: CheckResult) -> EffectiveSeverity:
        override = self._overrides.get(result.descriptor.code)
        if override is not None:
            return override
        # Verification failures block unless explicitly overridden.
        if result.is_verification_failure:
            return EffectiveSeverity.ERROR
        return EffectiveSeverity.from_default(result.descriptor.default_severity)
