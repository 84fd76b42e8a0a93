"""Check: Permissions-Policy restricts sensitive browser features."""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, CheckTier, Severity, violation
from prodguard.context import RuntimeContext
from prodguard.http_facts import first_header, permissions_policy_features
from prodguard.local_probe import fetch_local
from prodguard.probe import HttpProbe


DESCRIPTOR = CheckDescriptor(
    code="PG-208",
    title="Effective Permissions-Policy header",
    default_severity=Severity.WARN,
    tier=CheckTier.PREMIUM,
    description=(
        "Missing or permissive permissions policies may let camera, microphone, "
        "geolocation and similar browser features be used unexpectedly."
    ),
)

SENSITIVE_FEATURES = (
    "camera",
    "microphone",
    "geolocation",
    "payment",
    "usb",
    "serial",
    "bluetooth",
)


async def evaluate(ctx: RuntimeContext, probe: HttpProbe) -> CheckResult | None:
    response = await fetch_local(ctx, probe, DESCRIPTOR, subject="Permissions-Policy")
    if isinstance(response, CheckResult):
        return response

    value = first_header(response.headers, "Permissions-Policy")
    if value is None:
        return violation(
            DESCRIPTOR,
            "Permissions-Policy header is not present",
            "Configure a restrictive Permissions-Policy",
        )

    unrestricted = {name for name, allowlist in permissions_policy_features(value) if allowlist == "*"}
    for feature in SENSITIVE_FEATURES:
        if feature in unrestricted:
            return violation(
                DESCRIPTOR,
                f"Unrestricted browser feature detected: {feature}",
                f"Restrict {feature} in Permissions-Policy",
            )
    return None
