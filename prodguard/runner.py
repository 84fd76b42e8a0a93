"""Startup verification orchestration for prod-guard.

One pass per process: gate on the environment, evaluate every check, resolve
effective severities, report every finding, then decide whether startup may
continue.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from prodguard.async_engine import run_async_batch
from prodguard.check_catalog import build_checks
from prodguard.check_schema import Check, CheckResult, EffectiveSeverity, Finding, verification_failure
from prodguard.context import RuntimeContext, is_production
from prodguard.output import ConsoleReporter, GuardReporter
from prodguard.probe import AiohttpProbe, HttpProbe
from prodguard.settings import DEFAULT_CONCURRENCY, GuardSettings, load_settings
from prodguard.severity import SeverityResolver


class Decision(str, Enum):
    CONTINUE = "CONTINUE"
    CONTINUE_WITH_WARNING = "CONTINUE_WITH_WARNING"
    ABORT = "ABORT"


@dataclass(frozen=True)
class GuardOutcome:
    decision: Decision
    findings: tuple[Finding, ...] = ()
    checks_run: int = 0
    gated: bool = False

    @property
    def aborted(self) -> bool:
        return self.decision is Decision.ABORT

    @property
    def blocking_codes(self) -> list[str]:
        return [item.code for item in self.findings if item.severity is EffectiveSeverity.ERROR]

    def finding_keys(self) -> set[tuple[str, str, str]]:
        return {item.key() for item in self.findings}


class StartupAbortedError(RuntimeError):
    """Raised when blocking findings must stop the host from starting."""

    def __init__(self, outcome: GuardOutcome) -> None:
        codes = ", ".join(outcome.blocking_codes) or "-"
        super().__init__(f"prod-guard detected blocking issues: {codes}")
        self.outcome = outcome


@dataclass
class GuardRunner:
    checks: Sequence[Check]
    resolver: SeverityResolver = field(default_factory=SeverityResolver)
    reporter: GuardReporter = field(default_factory=ConsoleReporter)
    report_only: bool = False
    force: bool = False
    concurrency: int = DEFAULT_CONCURRENCY

    @classmethod
    def from_settings(
        cls,
        checks: Sequence[Check],
        settings: GuardSettings,
        reporter: GuardReporter | None = None,
    ) -> "GuardRunner":
        return cls(
            checks=list(checks),
            resolver=SeverityResolver.from_settings(settings),
            reporter=reporter or ConsoleReporter(settings.log_dir),
            report_only=settings.report_only,
            force=settings.force,
            concurrency=settings.concurrency,
        )

    def should_run(self, ctx: RuntimeContext) -> bool:
        return self.force or is_production(ctx.get_active_profiles())

    async def _evaluate_one(self, check: Check, ctx: RuntimeContext) -> CheckResult | None:
        try:
            return await check.evaluate(ctx)
        except Exception as exc:
            return verification_failure(
                check.descriptor,
                f"Check {check.code} could not complete verification: {exc}",
                "Report this failure; the check must never raise during evaluation",
            )

    async def _collect_results(self, ctx: RuntimeContext) -> list[CheckResult]:
        outcomes = await run_async_batch(
            [self._evaluate_one(check, ctx) for check in self.checks],
            concurrency_limit=self.concurrency,
        )
        return [item for item in outcomes if isinstance(item, CheckResult)]

    async def execute(self, ctx: RuntimeContext) -> GuardOutcome:
        """Run the pass and return the outcome without raising on abort."""

        if not self.should_run(ctx):
            self.reporter.event(
                "checks_skipped",
                "prod profile not active and prodguard.force not true -> skipping checks",
            )
            return GuardOutcome(decision=Decision.CONTINUE, gated=True)

        results = await self._collect_results(ctx)
        findings: list[Finding] = []
        for result in results:
            severity = self.resolver.resolve(result)
            if severity is EffectiveSeverity.DISABLED:
                continue
            finding = Finding(result=result, severity=severity)
            self.reporter.finding(finding)
            findings.append(finding)

        if not findings:
            self.reporter.event("no_issues", "no issues detected")
            return GuardOutcome(decision=Decision.CONTINUE, checks_run=len(self.checks))

        blocking = any(item.severity is EffectiveSeverity.ERROR for item in findings)
        if not blocking:
            decision = Decision.CONTINUE
        elif self.report_only:
            self.reporter.event(
                "report_only",
                "report-only mode enabled - application will continue to start",
                level="WARN",
            )
            decision = Decision.CONTINUE_WITH_WARNING
        else:
            decision = Decision.ABORT

        outcome = GuardOutcome(decision=decision, findings=tuple(findings), checks_run=len(self.checks))
        if outcome.aborted:
            self.reporter.event(
                "startup_aborted",
                f"blocking issues detected: {', '.join(outcome.blocking_codes)}",
                level="ERROR",
            )
        return outcome

    async def run(self, ctx: RuntimeContext) -> GuardOutcome:
        """Run the pass; raise :class:`StartupAbortedError` when startup must stop."""

        outcome = await self.execute(ctx)
        if outcome.aborted:
            raise StartupAbortedError(outcome)
        return outcome


def build_runner(
    ctx: RuntimeContext,
    *,
    probe: HttpProbe | None = None,
    reporter: GuardReporter | None = None,
    settings: GuardSettings | None = None,
) -> GuardRunner:
    settings = settings or load_settings(ctx)
    if probe is None:
        probe = AiohttpProbe(
            connect_timeout=settings.connect_timeout,
            total_timeout=settings.total_timeout,
            verify_tls=settings.verify_tls,
        )
    reporter = reporter or ConsoleReporter(settings.log_dir)
    checks = build_checks(probe, premium_enabled=settings.premium_enabled)
    if settings.premium_enabled:
        target = settings.target
        reporter.event(
            "premium_enabled",
            f"Premium security checks enabled (host {target.host}, "
            f"paths {target.probe_path} and {target.headers_path})",
        )
    return GuardRunner.from_settings(checks, settings, reporter)


def guard_startup(
    ctx: RuntimeContext,
    *,
    probe: HttpProbe | None = None,
    reporter: GuardReporter | None = None,
) -> GuardOutcome:
    """Blocking host hook: verify once, raise on abort.

    Hosts already running an event loop should ``await build_runner(ctx).run(ctx)``.
    """

    runner = build_runner(ctx, probe=probe, reporter=reporter)
    return asyncio.run(runner.run(ctx))
