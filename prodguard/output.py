"""Console and framework-log output for guard runs."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from prodguard.check_schema import EffectiveSeverity, Finding
from prodguard.colors import Colors, c
from prodguard.metadata import LOG_PREFIX, utc_timestamp
from prodguard.storage import LOG_DIR, ensure_log_dir, framework_log_path

if TYPE_CHECKING:
    from prodguard.runner import GuardOutcome


class GuardReporter(Protocol):
    def event(self, event: str, details: str = "", *, level: str = "INFO") -> None: ...

    def finding(self, finding: Finding) -> None: ...


def _severity_color(severity: EffectiveSeverity) -> str:
    mapping = {
        EffectiveSeverity.ERROR: Colors.RED,
        EffectiveSeverity.WARN: Colors.YELLOW,
        EffectiveSeverity.INFO: Colors.CYAN,
    }
    return mapping.get(severity, Colors.GREY)


def format_finding_line(finding: Finding) -> str:
    return f"{LOG_PREFIX} {finding.severity.value} {finding.code} - {finding.message} | {finding.remediation}"


def format_finding_details(finding: Finding) -> str:
    return (
        f"severity={finding.severity.value} code={finding.code} kind={finding.result.kind.value} "
        f"message={finding.message} remediation={finding.remediation}"
    )


def append_framework_log(
    event: str,
    details: str = "",
    *,
    level: str = "INFO",
    log_dir: Path = LOG_DIR,
) -> str:
    ensure_log_dir(log_dir)
    path = framework_log_path(log_dir)
    line = f"[{utc_timestamp()}] [{level.upper()}] {event}"
    if details:
        line = f"{line} | {details}"
    with path.open("a", encoding="utf-8") as handle:
        handle.write(line + "\n")
    return str(path)


class ConsoleReporter:
    """Print findings and events, mirroring each into the framework log.

    ``log_dir=None`` keeps output on the console only.
    """

    def __init__(self, log_dir: Path | None = LOG_DIR) -> None:
        self.log_dir = log_dir

    def _log(self, event: str, details: str, level: str) -> None:
        if self.log_dir is not None:
            append_framework_log(event, details, level=level, log_dir=self.log_dir)

    def event(self, event: str, details: str = "", *, level: str = "INFO") -> None:
        color = Colors.RED if level == "ERROR" else Colors.YELLOW if level == "WARN" else Colors.GREY
        text = f"{LOG_PREFIX} {details or event}"
        print(c(text, color))
        self._log(event, details, level)

    def finding(self, finding: Finding) -> None:
        print(c(format_finding_line(finding), _severity_color(finding.severity)))
        self._log("finding", format_finding_details(finding), finding.severity.value)


def display_outcome(outcome: "GuardOutcome") -> None:
    print(c(f"\n{LOG_PREFIX} [ Startup Verification ]", Colors.BLUE))
    print(c("------------------------------------", Colors.BLUE))
    if outcome.gated:
        print(c("checks skipped: production profile not active", Colors.GREY))
    else:
        print(c(f"checks executed: {outcome.checks_run}", Colors.GREY))
        print(c(f"findings reported: {len(outcome.findings)}", Colors.GREY))
    color = Colors.RED if outcome.aborted else Colors.YELLOW if outcome.findings else Colors.GREEN
    print(c(f"decision: {outcome.decision.value}", color))


def display_catalog(rows: list[dict[str, str]]) -> None:
    print(c(f"\n{LOG_PREFIX} [ Check Catalog ]", Colors.BLUE))
    print(c("------------------------------------", Colors.BLUE))
    if not rows:
        print(c("none", Colors.GREY))
        return
    for row in rows:
        print(c(f"{row['code']} [{row['tier']}] [{row['severity']}] {row['title']}", Colors.CYAN))
        print(c(f"  {row['description']}", Colors.GREY))
