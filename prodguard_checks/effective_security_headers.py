"""Check: required and recommended security headers on the health endpoint."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import has_header
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-201",
    title="Effective HTTP security headers",
    default_severity=Severity.ERROR,
    tier=CheckTier.PREMIUM,
    description=(
        "Requests the local health endpoint over HTTP and verifies that critical "
        "security headers survive filters, proxies and runtime overrides."
    ),
)

REQUIRED_HEADERS = ("x-content-type-options", "x-frame-options")
RECOMMENDED_HEADERS = ("content-security-policy", "referrer-policy")


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(
        ctx,
        probe,
        DESCRIPTOR,
        subject="security headers",
        scheme="http",
        headers_endpoint=True,
    )
    if isinstance(response, CheckResult):
        return response

    missing_required = [name for name in REQUIRED_HEADERS if not has_header(response.headers, name)]
    if missing_required:
        return violation(
            DESCRIPTOR,
            f"Missing required HTTP security headers: {', '.join(missing_required)}",
            "Add the headers in the application or verify the reverse proxy configuration",
        )

    missing_recommended = [name for name in RECOMMENDED_HEADERS if not has_header(response.headers, name)]
    if missing_recommended:
        return violation(
            DESCRIPTOR,
            f"Missing recommended HTTP security headers: {', '.join(missing_recommended)}",
            "Consider hardening security headers for production environments",
        )
    return None
