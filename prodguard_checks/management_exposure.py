"""Check: management endpoints are not exposed wholesale."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-004",
    title="Management endpoints fully exposed",
    default_severity=Severity.ERROR,
    tier=CheckTier.FREE,
    description="Exposing every management endpoint over the web publishes environment and heap data.",
)

PROPERTY = "management.endpoints.web.exposure.include"


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    exposed = [item.strip() for item in (ctx.get_property(PROPERTY) or "").split(",")]
    if "*" in exposed:
        return violation(
            DESCRIPTOR,
            f"All management endpoints are exposed over the web ({PROPERTY}=*)",
            "Expose only the endpoints you need, for example health and info",
        )
    return None
