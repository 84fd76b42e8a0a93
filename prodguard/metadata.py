"""Central project metadata for prod-guard."""

from __future__ import annotations

from datetime import datetime, timezone


PROJECT_NAME = "prod-guard"
VERSION = "1.2"
LOG_PREFIX = f"[{PROJECT_NAME}]"
TAGLINE = "Runtime production-readiness verification at application startup"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def about_block() -> str:
    return (
        f"{PROJECT_NAME} v{VERSION}\n"
        f"{TAGLINE}\n"
        "Probes the running service over its real network interface and fails\n"
        "startup when critical security misconfigurations are detected."
    )
