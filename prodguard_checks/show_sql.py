"""Check: SQL statements are not echoed to the log."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext, parse_bool
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-002",
    title="SQL statement echo enabled",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description="Echoing every SQL statement floods logs and may expose sensitive values.",
)

PROPERTY = "database.show-sql"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    if parse_bool(ctx.get_property(PROPERTY)):
        return violation(
            DESCRIPTOR,
            f"SQL statement echo is enabled ({PROPERTY}=true)",
            f"Set {PROPERTY}=false in production",
        )
    return None
