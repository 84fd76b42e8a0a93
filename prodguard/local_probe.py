"""Single probe of the locally running service on behalf of one check.

A missing port, an unusable probe target or a failed exchange comes back as a
verification-failure result instead of a response, so each check can return
it unchanged.
"""

from __future__ import annotations

from prodguard.check_schema import CheckDescriptor, CheckResult, verification_failure
from prodguard.context import RuntimeContext
from prodguard.probe import HttpProbe, ProbeRequest, ProbeResponse
from prodguard.settings import SettingsValidationError, resolve_probe_target


async def fetch_local(
    ctx: RuntimeContext,
    probe: HttpProbe,
    descriptor: CheckDescriptor,
    *,
    subject: str,
    scheme: str = "https",
    headers_endpoint: bool = False,
) -> ProbeResponse | CheckResult:
    port = ctx.get_local_port()
    if port is None:
        return verification_failure(
            descriptor,
            f"Unable to determine local server port for {subject} validation",
            "Ensure the application is running as a web server before startup checks execute",
        )

    try:
        target = resolve_probe_target(ctx)
    except SettingsValidationError as exc:
        return verification_failure(
            descriptor,
            f"Invalid probe target for {subject} validation: {exc}",
            "Fix the prodguard.probe.* and prodguard.headers.path settings",
        )

    protocol = "HTTPS" if scheme == "https" else "HTTP"
    path = target.headers_path if headers_endpoint else target.probe_path
    request = ProbeRequest(url=target.url(scheme, port, path))
    try:
        return await probe.send(request)
    except Exception as exc:
        return verification_failure(
            descriptor,
            f"Failed to perform {protocol} request for {subject} inspection: {exc}",
            f"Verify the server is reachable over {protocol} on port {port} during startup",
        )
