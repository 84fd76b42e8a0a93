"""Check: HTTPS is enforced for plain HTTP requests."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import header_values, is_redirect
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-202",
    title="Effective HTTPS enforcement",
    default_severity=Severity.ERROR,
    tier=CheckTier.PREMIUM,
    description=(
        "Issues a plain HTTP request against the running application and verifies "
        "that it either redirects to HTTPS or explicitly rejects insecure connections."
    ),
)

REJECTION_STATUSES = frozenset({403, 426})


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="HTTPS enforcement", scheme="http")
    if isinstance(response, CheckResult):
        return response

    if is_redirect(response.status):
        locations = header_values(response.headers, "Location")
        if any(location.strip().lower().startswith("https://") for location in locations):
            return None
        return violation(
            DESCRIPTOR,
            "HTTP requests are redirected, but not to HTTPS",
            "Ensure HTTP traffic is redirected to HTTPS endpoints",
        )

    if response.status in REJECTION_STATUSES:
        return None

    return violation(
        DESCRIPTOR,
        f"Application accepts plain HTTP requests without HTTPS enforcement (status {response.status})",
        "Configure HTTPS redirection or enforce TLS at proxy/application level",
    )
