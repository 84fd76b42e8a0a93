"""Check: an enforced, strict Content-Security-Policy is returned."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import first_header, has_header, split_directives
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-204",
    title="Effective Content Security Policy",
    default_severity=Severity.ERROR,
    tier=CheckTier.PREMIUM,
    description=(
        "Ensures the Content-Security-Policy returned at runtime is enforced (not "
        "report-only) and free of unsafe-inline, unsafe-eval and wildcard default sources."
    ),
)

UNSAFE_KEYWORDS = ("unsafe-inline", "unsafe-eval")


def _allows_wildcard_default(csp: str) -> bool:
    for directive in split_directives(csp):
        if directive.startswith("default-src") and "*" in directive:
            return True
    return False


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="CSP")
    if isinstance(response, CheckResult):
        return response

    if has_header(response.headers, "Content-Security-Policy-Report-Only"):
        return violation(
            DESCRIPTOR,
            "CSP is configured in report-only mode",
            "Enforce Content-Security-Policy instead of report-only",
        )

    csp = first_header(response.headers, "Content-Security-Policy")
    if csp is None:
        return violation(
            DESCRIPTOR,
            "Content-Security-Policy header is not present",
            "Define a strict Content-Security-Policy for production",
        )

    policy = csp.lower()
    found = [keyword for keyword in UNSAFE_KEYWORDS if keyword in policy]
    if found:
        return violation(
            DESCRIPTOR,
            f"CSP contains unsafe directives ({' / '.join(found)})",
            "Remove unsafe CSP directives and use nonces or hashes",
        )

    if _allows_wildcard_default(policy):
        return violation(
            DESCRIPTOR,
            "CSP allows wildcard sources in default-src",
            "Restrict CSP sources explicitly instead of using '*'",
        )
    return None
