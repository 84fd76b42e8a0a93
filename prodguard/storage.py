"""Output storage path utilities for prod-guard."""

from __future__ import annotations

from pathlib import Path


OUTPUT_ROOT = Path("output")
LOG_DIR = OUTPUT_ROOT / "logs"
FRAMEWORK_LOG_NAME = "prod-guard.log.txt"


def ensure_log_dir(log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def framework_log_path(log_dir: Path = LOG_DIR) -> Path:
    return log_dir / FRAMEWORK_LOG_NAME
