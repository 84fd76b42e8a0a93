"""Check: the application has not switched off its security response headers."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-006",
    title="Security headers disabled",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description="Turning off the framework's default security headers drops X-Frame-Options, nosniff and HSTS.",
)

PROPERTY = "security.headers.enabled"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    if (ctx.get_property(PROPERTY) or "").strip().lower() == "false":
        return violation(
            DESCRIPTOR,
            f"Security response headers are disabled ({PROPERTY}=false)",
            f"Remove {PROPERTY}=false or set the headers at a reverse proxy and disable {DESCRIPTOR.code}",
        )
    return None
