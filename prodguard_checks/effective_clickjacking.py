"""Check: responses cannot be framed by other origins."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import csp_directives, first_header
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-206",
    title="Effective clickjacking protection",
    default_severity=Severity.ERROR,
    tier=CheckTier.PREMIUM,
    description=(
        "Verifies that responses returned over HTTPS prevent rendering inside foreign "
        "iframes through X-Frame-Options or a CSP frame-ancestors directive."
    ),
)

SAFE_FRAME_OPTIONS = ("deny", "sameorigin")


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="clickjacking protection")
    if isinstance(response, CheckResult):
        return response

    frame_options = first_header(response.headers, "X-Frame-Options")
    if frame_options is not None:
        value = frame_options.lower()
        if any(option in value for option in SAFE_FRAME_OPTIONS):
            return None
        return violation(
            DESCRIPTOR,
            f"Invalid X-Frame-Options value: {frame_options}",
            "Use X-Frame-Options DENY or SAMEORIGIN",
        )

    csp = first_header(response.headers, "Content-Security-Policy")
    if csp is not None and "frame-ancestors" in csp_directives(csp):
        return None

    return violation(
        DESCRIPTOR,
        "No clickjacking protection detected",
        "Configure X-Frame-Options or CSP frame-ancestors",
    )
