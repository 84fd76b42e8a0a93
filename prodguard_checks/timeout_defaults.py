"""Check: request handling has an explicit timeout."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-010",
    title="Request timeout not configured",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description="Without a request timeout slow clients and stuck handlers hold workers indefinitely.",
)

PROPERTY = "server.request-timeout"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    if not (ctx.get_property(PROPERTY) or "").strip():
        return violation(
            DESCRIPTOR,
            f"Request timeout is not configured ({PROPERTY})",
            f"Set {PROPERTY}, for example 30s",
        )
    return None
