"""Check: the server itself is configured for TLS."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext, parse_bool
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-005",
    title="TLS not configured on the server",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description=(
        "Reports servers that do not terminate TLS themselves. Safe to disable when "
        "a reverse proxy terminates TLS in front of the application."
    ),
)

PROPERTY = "server.ssl.enabled"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    if not parse_bool(ctx.get_property(PROPERTY)):
        return violation(
            DESCRIPTOR,
            f"TLS is not enabled on the server ({PROPERTY} is not true)",
            f"Set {PROPERTY}=true or terminate TLS at a reverse proxy and disable {DESCRIPTOR.code}",
        )
    return None
