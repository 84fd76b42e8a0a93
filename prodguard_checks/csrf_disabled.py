"""Check: CSRF protection is left on."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-007",
    title="CSRF protection disabled",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description=(
        "Cookie-authenticated applications without CSRF tokens accept forged cross-site "
        "requests. Safe to disable for stateless token-authenticated APIs."
    ),
)

PROPERTY = "security.csrf.enabled"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    if (ctx.get_property(PROPERTY) or "").strip().lower() == "false":
        return violation(
            DESCRIPTOR,
            f"CSRF protection is disabled ({PROPERTY}=false)",
            f"Enable CSRF protection, or disable {DESCRIPTOR.code} for stateless APIs",
        )
    return None
