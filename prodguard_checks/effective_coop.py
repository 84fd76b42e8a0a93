"""Check: Cross-Origin-Opener-Policy isolates the browsing context."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import first_header, policy_token
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-209",
    title="Effective Cross-Origin-Opener-Policy header",
    default_severity=Severity.WARN,
    tier=CheckTier.PREMIUM,
    description=(
        "Missing or weak COOP policies may expose the application to cross-origin "
        "attacks such as XS-Leaks or Spectre-based data leaks."
    ),
)

SAFE_POLICIES = ("same-origin", "same-origin-allow-popups")


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="Cross-Origin-Opener-Policy")
    if isinstance(response, CheckResult):
        return response

    value = first_header(response.headers, "Cross-Origin-Opener-Policy")
    if value is None:
        return violation(
            DESCRIPTOR,
            "Cross-Origin-Opener-Policy header is not present",
            "Configure COOP to isolate the browsing context",
        )

    policy = policy_token(value)
    if policy not in SAFE_POLICIES:
        return violation(
            DESCRIPTOR,
            f"Weak Cross-Origin-Opener-Policy detected: {policy}",
            f"Use one of: {', '.join(SAFE_POLICIES)}",
        )
    return None
