"""Check: cookies returned over HTTPS carry Secure, HttpOnly and SameSite."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import header_values, parse_set_cookie
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-205",
    title="Effective cookie security flags",
    default_severity=Severity.ERROR,
    tier=CheckTier.PREMIUM,
    description=(
        "Inspects Set-Cookie headers returned over HTTPS. Production cookies must define "
        "Secure, HttpOnly and SameSite to mitigate session fixation, XSS and CSRF."
    ),
)


def _cookie_violation(raw_cookie: str) -> CheckResult | None:
    cookie = parse_set_cookie(raw_cookie)
    # First failing attribute wins: Secure, HttpOnly, SameSite, then None-without-Secure.
    if not cookie.secure:
        return violation(
            DESCRIPTOR,
            f"Cookie is missing Secure flag: {cookie.raw}",
            "Add the Secure attribute to cookies sent over HTTPS",
        )
    if not cookie.http_only:
        return violation(
            DESCRIPTOR,
            f"Cookie is missing HttpOnly flag: {cookie.raw}",
            "Add the HttpOnly attribute to prevent JavaScript access",
        )
    if cookie.same_site is None:
        return violation(
            DESCRIPTOR,
            f"Cookie is missing SameSite attribute: {cookie.raw}",
            "Define SameSite=Strict or SameSite=Lax for cookies",
        )
    if cookie.same_site == "none" and not cookie.secure:
        return violation(
            DESCRIPTOR,
            f"Cookie uses SameSite=None without Secure: {cookie.raw}",
            "SameSite=None cookies must also define Secure",
        )
    return None


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="cookie flags")
    if isinstance(response, CheckResult):
        return response

    for raw_cookie in header_values(response.headers, "Set-Cookie"):
        result = _cookie_violation(raw_cookie)
        if result is not None:
            return result
    return None
