"""Check: the connection pool size is set explicitly."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-009",
    title="Connection pool size not configured",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description="Library default pool sizes rarely match production load and database limits.",
)

PROPERTY = "database.pool.max-size"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    if not (ctx.get_property(PROPERTY) or "").strip():
        return violation(
            DESCRIPTOR,
            f"Connection pool maximum size is not configured ({PROPERTY})",
            f"Set {PROPERTY} explicitly for the expected production load",
        )
    return None
