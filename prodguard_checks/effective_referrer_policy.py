"""Check: Referrer-Policy restricts referrer leakage."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import first_header
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-207",
    title="Effective Referrer-Policy header",
    default_severity=Severity.WARN,
    tier=CheckTier.PREMIUM,
    description=(
        "Weak or missing referrer policies may leak sensitive URL information to "
        "third-party origins."
    ),
)

SAFE_POLICIES = (
    "no-referrer",
    "same-origin",
    "strict-origin",
    "strict-origin-when-cross-origin",
)


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="Referrer-Policy")
    if isinstance(response, CheckResult):
        return response

    value = first_header(response.headers, "Referrer-Policy")
    if value is None:
        return violation(
            DESCRIPTOR,
            "Referrer-Policy header is not present",
            "Configure Referrer-Policy to restrict referrer leakage",
        )

    policy = value.strip().lower()
    if policy not in SAFE_POLICIES:
        return violation(
            DESCRIPTOR,
            f"Weak Referrer-Policy detected: {policy}",
            f"Use one of: {', '.join(SAFE_POLICIES)}",
        )
    return None
