"""Check: the process memory limit leaves headroom for production load."""

from __future__ import annotations

import re

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-008",
    title="Memory limit too low",
    default_severity=Severity.WARN,
    tier=CheckTier.FREE,
    description="A small memory ceiling turns ordinary traffic spikes into out-of-memory restarts.",
)

PROPERTY = "runtime.memory.limit"
MIN_BYTES = 512 * 1024 * 1024
SIZE_PATTERN = re.compile(r"^(\d+)\s*([kmg]i?b?|b)?$", re.IGNORECASE)
UNIT_BYTES = {"": 1, "b": 1, "k": 1024, "m": 1024**2, "g": 1024**3}


def parse_memory_size(raw: str) -> int | None:
    """``512m``, ``1Gi``, ``2GB`` or plain bytes; ``None`` when unparseable."""

    match = SIZE_PATTERN.match(raw.strip())
    if match is None:
        return None
    unit = (match.group(2) or "").lower()[:1]
    return int(match.group(1)) * UNIT_BYTES[unit]


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    raw = (ctx.get_property(PROPERTY) or "").strip()
    if not raw:
        return None

    size = parse_memory_size(raw)
    if size is None:
        return violation(
            DESCRIPTOR,
            f"Memory limit is not a valid size: '{raw}' ({PROPERTY})",
            "Use a size such as 512m or 1g",
        )
    if size < MIN_BYTES:
        return violation(
            DESCRIPTOR,
            f"Memory limit is too low ({raw}, {PROPERTY})",
            "Allow at least 512m for production workloads",
        )
    return None
