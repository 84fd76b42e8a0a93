"""Check schema definitions for prod-guard.

A check is a module-level ``DESCRIPTOR`` plus an ``evaluate(ctx, probe)``
coroutine. The catalog binds the two together with the probe that production
wiring (or a test) supplies, producing a :class:`Check`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from prodguard.context import RuntimeContext
    from prodguard.probe import HttpProbe


CODE_PATTERN = re.compile(r"^PG-\d{3}$")


class Severity(str, Enum):
    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"


class EffectiveSeverity(str, Enum):
    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DISABLED = "DISABLED"

    @classmethod
    def from_default(cls, severity: Severity) -> "EffectiveSeverity":
        return cls(severity.value)


class CheckTier(str, Enum):
    FREE = "FREE"
    PREMIUM = "PREMIUM"


class FindingKind(str, Enum):
    VIOLATION = "VIOLATION"
    VERIFICATION_FAILURE = "VERIFICATION_FAILURE"


@dataclass(frozen=True)
class CheckDescriptor:
    code: str
    title: str
    default_severity: Severity
    tier: CheckTier
    description: str = ""

    def __post_init__(self) -> None:
        if not CODE_PATTERN.match(self.code or ""):
            raise ValueError(f"Check code must look like PG-123, got {self.code!r}.")
        if not self.title.strip():
            raise ValueError(f"{self.code}: title must not be empty.")
        if not isinstance(self.default_severity, Severity):
            raise ValueError(f"{self.code}: default_severity must be a Severity.")
        if not isinstance(self.tier, CheckTier):
            raise ValueError(f"{self.code}: tier must be a CheckTier.")


@dataclass(frozen=True)
class CheckResult:
    descriptor: CheckDescriptor
    message: str
    remediation: str
    kind: FindingKind = FindingKind.VIOLATION

    @property
    def code(self) -> str:
        return self.descriptor.code

    @property
    def is_verification_failure(self) -> bool:
        return self.kind is FindingKind.VERIFICATION_FAILURE


@dataclass(frozen=True)
class Finding:
    """A result paired with the severity it resolved to."""

    result: CheckResult
    severity: EffectiveSeverity

    @property
    def code(self) -> str:
        return self.result.descriptor.code

    @property
    def message(self) -> str:
        return self.result.message

    @property
    def remediation(self) -> str:
        return self.result.remediation

    def key(self) -> tuple[str, str, str]:
        return (self.code, self.severity.value, self.message)


def violation(descriptor: CheckDescriptor, message: str, remediation: str) -> CheckResult:
    return CheckResult(descriptor, message, remediation, FindingKind.VIOLATION)


def verification_failure(descriptor: CheckDescriptor, message: str, remediation: str) -> CheckResult:
    return CheckResult(descriptor, message, remediation, FindingKind.VERIFICATION_FAILURE)


EvaluateFn = Callable[["RuntimeContext", "HttpProbe"], Awaitable["CheckResult | None"]]


@dataclass(frozen=True)
class Check:
    descriptor: CheckDescriptor
    evaluate_fn: EvaluateFn
    probe: "HttpProbe"

    @property
    def code(self) -> str:
        return self.descriptor.code

    async def evaluate(self, ctx: "RuntimeContext") -> CheckResult | None:
        return await self.evaluate_fn(ctx, self.probe)
