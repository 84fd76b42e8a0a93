"""Check: Strict-Transport-Security is present and long-lived."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import directive_value, first_header
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-203",
    title="Effective HSTS configuration",
    default_severity=Severity.ERROR,
    tier=CheckTier.PREMIUM,
    description=(
        "Validates the presence and strength of the Strict-Transport-Security header "
        "returned over HTTPS, accounting for reverse proxies and deployment topology."
    ),
)

MIN_MAX_AGE_SECONDS = 31536000  # one year


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="HSTS")
    if isinstance(response, CheckResult):
        return response

    hsts = first_header(response.headers, "Strict-Transport-Security")
    if hsts is None:
        return violation(
            DESCRIPTOR,
            "HSTS header is not present in HTTPS responses",
            "Configure Strict-Transport-Security with an appropriate max-age",
        )

    raw_max_age = directive_value(hsts, "max-age")
    if raw_max_age is None:
        return violation(
            DESCRIPTOR,
            "HSTS header is present but missing max-age directive",
            "Configure Strict-Transport-Security with a valid max-age",
        )

    try:
        max_age = int(raw_max_age)
    except ValueError:
        return violation(
            DESCRIPTOR,
            f"HSTS max-age is not a valid number of seconds: '{raw_max_age}'",
            f"Use a numeric max-age of at least {MIN_MAX_AGE_SECONDS} seconds (1 year)",
        )

    if max_age < MIN_MAX_AGE_SECONDS:
        return violation(
            DESCRIPTOR,
            f"HSTS max-age is too low ({max_age} seconds)",
            f"Use a max-age of at least {MIN_MAX_AGE_SECONDS} seconds (1 year)",
        )
    return None
