"""ANSI colour codes for console output; ``NO_COLOR`` turns them off."""

from __future__ import annotations

import os


class Colors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GREY = "\033[90m"
    RESET = "\033[0m"


def _colors_enabled() -> bool:
    return not os.environ.get("NO_COLOR")


def c(text: object, color: str) -> str:
    if not _colors_enabled():
        return str(text)
    return f"{color}{text}{Colors.RESET}"
