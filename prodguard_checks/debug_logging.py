"""Check: root logger is not left at debug verbosity."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-001",
    title="Debug logging enabled",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description="Debug or trace root logging leaks internals and slows production services.",
)

PROPERTY = "logging.level.root"
VERBOSE_LEVELS = ("debug", "trace")


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    level = (ctx.get_property(PROPERTY) or "").strip().lower()
    if level in VERBOSE_LEVELS:
        return violation(
            DESCRIPTOR,
            f"Root logging level is {level.upper()} ({PROPERTY})",
            "Use INFO or WARN as the root logging level in production",
        )
    return None
