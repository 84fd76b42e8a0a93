"""Check: error responses do not include stack traces."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-003",
    title="Stack traces exposed in error responses",
    default_severity=Severity.ERROR,
    tier=CheckTier.FREE,
    description="Stack traces in HTTP error bodies disclose framework versions and code layout.",
)

PROPERTY = "server.error.include-stacktrace"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    if (ctx.get_property(PROPERTY) or "").strip().lower() == "always":
        return violation(
            DESCRIPTOR,
            f"Error responses always include stack traces ({PROPERTY}=always)",
            f"Set {PROPERTY}=never in production",
        )
    return None
