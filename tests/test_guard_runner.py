import asyncio
import io
import os
import tempfile
import types
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from prodguard.async_engine import run_async_batch
from prodguard.check_schema import (
    Check,
    CheckDescriptor,
    CheckTier,
    EffectiveSeverity,
    FindingKind,
    Severity,
    violation,
)
from prodguard.colors import Colors, c
from prodguard.context import StaticRuntimeContext
from prodguard.output import ConsoleReporter
from prodguard.probe import CannedProbe, ProbeResponse
from prodguard.runner import Decision, GuardRunner, StartupAbortedError, build_runner, guard_startup
from prodguard.settings import GuardSettings, load_settings
from prodguard.severity import SeverityResolver
from prodguard.storage import FRAMEWORK_LOG_NAME
from prodguard_checks import effective_coop, effective_permissions_policy, effective_referrer_policy


PROD = StaticRuntimeContext(local_port=8080, active_profiles=("prod",))

ERROR_CHECK = CheckDescriptor("PG-901", "Always failing", Severity.ERROR, CheckTier.FREE)
WARN_CHECK = CheckDescriptor("PG-902", "Always warning", Severity.WARN, CheckTier.FREE)
CLEAN_CHECK = CheckDescriptor("PG-903", "Always clean", Severity.ERROR, CheckTier.FREE)


class RecordingReporter:
    def __init__(self):
        self.events = []
        self.findings = []

    def event(self, event, details="", *, level="INFO"):
        self.events.append((event, level))

    def finding(self, finding):
        self.findings.append(finding)

    def event_names(self):
        return [name for name, _ in self.events]


def _check(descriptor, message="failed", calls=None):
    async def evaluate(ctx, probe):
        if calls is not None:
            calls.append(descriptor.code)
        if descriptor is CLEAN_CHECK:
            return None
        return violation(descriptor, message, "fix it")

    return Check(descriptor=descriptor, evaluate_fn=evaluate, probe=CannedProbe(ProbeResponse.of(200)))


def _runner(checks, **kwargs):
    reporter = RecordingReporter()
    return GuardRunner(checks=checks, reporter=reporter, **kwargs), reporter


class TestGuardRunner(unittest.IsolatedAsyncioTestCase):
    async def test_gate_skips_checks_outside_production(self):
        calls = []
        runner, reporter = _runner([_check(ERROR_CHECK, calls=calls)])
        outcome = await runner.execute(StaticRuntimeContext(local_port=8080, active_profiles=("dev",)))
        self.assertEqual(calls, [])
        self.assertTrue(outcome.gated)
        self.assertEqual(outcome.decision, Decision.CONTINUE)
        self.assertEqual(reporter.event_names(), ["checks_skipped"])

    async def test_gate_accepts_production_profile_in_any_case(self):
        calls = []
        runner, _ = _runner([_check(CLEAN_CHECK, calls=calls)])
        await runner.execute(StaticRuntimeContext(active_profiles=("cloud", "Production")))
        self.assertEqual(calls, ["PG-903"])

    async def test_force_runs_checks_without_production_profile(self):
        calls = []
        runner, _ = _runner([_check(CLEAN_CHECK, calls=calls)], force=True)
        await runner.execute(StaticRuntimeContext())
        self.assertEqual(calls, ["PG-903"])

    async def test_no_findings(self):
        runner, reporter = _runner([_check(CLEAN_CHECK)])
        outcome = await runner.execute(PROD)
        self.assertEqual(outcome.decision, Decision.CONTINUE)
        self.assertEqual(outcome.checks_run, 1)
        self.assertEqual(reporter.event_names(), ["no_issues"])

    async def test_warnings_only_continue(self):
        runner, reporter = _runner([_check(WARN_CHECK), _check(CLEAN_CHECK)])
        outcome = await runner.execute(PROD)
        self.assertEqual(outcome.decision, Decision.CONTINUE)
        self.assertEqual([item.code for item in reporter.findings], ["PG-902"])
        self.assertNotIn("startup_aborted", reporter.event_names())

    async def test_error_aborts_after_reporting_every_finding(self):
        runner, reporter = _runner([_check(ERROR_CHECK), _check(WARN_CHECK)])
        outcome = await runner.execute(PROD)
        self.assertTrue(outcome.aborted)
        self.assertEqual(sorted(item.code for item in reporter.findings), ["PG-901", "PG-902"])
        self.assertEqual(outcome.blocking_codes, ["PG-901"])
        self.assertIn(("startup_aborted", "ERROR"), reporter.events)

    async def test_run_raises_on_abort(self):
        runner, _ = _runner([_check(ERROR_CHECK)])
        with self.assertRaises(StartupAbortedError) as caught:
            await runner.run(PROD)
        self.assertIn("PG-901", str(caught.exception))
        self.assertTrue(caught.exception.outcome.aborted)

    async def test_report_only_continues_with_warning(self):
        runner, reporter = _runner([_check(ERROR_CHECK)], report_only=True)
        outcome = await runner.run(PROD)
        self.assertEqual(outcome.decision, Decision.CONTINUE_WITH_WARNING)
        self.assertIn(("report_only", "WARN"), reporter.events)
        self.assertEqual(reporter.findings[0].severity, EffectiveSeverity.ERROR)

    async def test_disabled_override_drops_finding(self):
        resolver = SeverityResolver({"pg-901": EffectiveSeverity.DISABLED})
        runner, reporter = _runner([_check(ERROR_CHECK)], resolver=resolver)
        outcome = await runner.execute(PROD)
        self.assertEqual(outcome.decision, Decision.CONTINUE)
        self.assertEqual(reporter.findings, [])

    async def test_downgrade_override_allows_startup(self):
        resolver = SeverityResolver({"PG-901": EffectiveSeverity.WARN})
        runner, reporter = _runner([_check(ERROR_CHECK)], resolver=resolver)
        outcome = await runner.execute(PROD)
        self.assertEqual(outcome.decision, Decision.CONTINUE)
        self.assertEqual(reporter.findings[0].severity, EffectiveSeverity.WARN)

    async def test_raising_check_becomes_verification_failure(self):
        async def explode(ctx, probe):
            raise RuntimeError("kaboom")

        check = Check(ERROR_CHECK, explode, CannedProbe(ProbeResponse.of(200)))
        runner, reporter = _runner([check, _check(CLEAN_CHECK)])
        outcome = await runner.execute(PROD)
        self.assertTrue(outcome.aborted)
        self.assertEqual(reporter.findings[0].result.kind, FindingKind.VERIFICATION_FAILURE)
        self.assertIn("kaboom", reporter.findings[0].message)

    async def test_repeated_runs_yield_same_findings(self):
        runner, _ = _runner([_check(ERROR_CHECK, "first"), _check(WARN_CHECK, "second")], report_only=True)
        first = await runner.execute(PROD)
        second = await runner.execute(PROD)
        self.assertEqual(first.finding_keys(), second.finding_keys())
        self.assertEqual(first.decision, second.decision)

    async def test_concurrency_limit_of_one_still_runs_everything(self):
        calls = []
        checks = [_check(WARN_CHECK, calls=calls), _check(CLEAN_CHECK, calls=calls)]
        runner, reporter = _runner(checks, concurrency=1)
        await runner.execute(PROD)
        self.assertEqual(sorted(calls), ["PG-902", "PG-903"])
        self.assertEqual(len(reporter.findings), 1)

    async def test_concurrency_limit_bounds_checks_in_flight(self):
        state = {"active": 0, "peak": 0}

        async def slow(ctx, probe):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return None

        probe = CannedProbe(ProbeResponse.of(200))
        checks = [
            Check(CheckDescriptor(f"PG-95{index}", "Slow", Severity.WARN, CheckTier.FREE), slow, probe)
            for index in range(6)
        ]
        runner, _ = _runner(checks, concurrency=2)
        outcome = await runner.execute(PROD)
        self.assertEqual(outcome.checks_run, 6)
        self.assertEqual(state["peak"], 2)

    async def test_unreachable_service_blocks_warn_default_checks(self):
        probe = CannedProbe(OSError("connection refused"))
        modules = (effective_referrer_policy, effective_permissions_policy, effective_coop)
        runner, reporter = _runner([Check(module.DESCRIPTOR, module.evaluate, probe) for module in modules])
        outcome = await runner.execute(PROD)
        self.assertTrue(outcome.aborted)
        self.assertEqual(sorted(outcome.blocking_codes), ["PG-207", "PG-208", "PG-209"])
        for finding in reporter.findings:
            self.assertEqual(finding.result.kind, FindingKind.VERIFICATION_FAILURE)
            self.assertEqual(finding.severity, EffectiveSeverity.ERROR)

    async def test_override_relaxes_unreachable_service_failure(self):
        probe = CannedProbe(OSError("connection refused"))
        modules = (effective_referrer_policy, effective_permissions_policy)
        resolver = SeverityResolver({"PG-207": EffectiveSeverity.WARN, "PG-208": EffectiveSeverity.DISABLED})
        checks = [Check(module.DESCRIPTOR, module.evaluate, probe) for module in modules]
        runner, reporter = _runner(checks, resolver=resolver)
        outcome = await runner.execute(PROD)
        self.assertEqual(outcome.decision, Decision.CONTINUE)
        findings = [(item.code, item.severity) for item in reporter.findings]
        self.assertEqual(findings, [("PG-207", EffectiveSeverity.WARN)])


class TestAsyncEngine(unittest.IsolatedAsyncioTestCase):
    async def test_results_keep_input_order(self):
        async def value(number):
            await asyncio.sleep(0.001 * (3 - number))
            return number

        self.assertEqual(await run_async_batch([value(n) for n in range(3)], concurrency_limit=1), [0, 1, 2])
        self.assertEqual(await run_async_batch([], concurrency_limit=4), [])

    async def test_errors_propagate(self):
        async def broken():
            raise ValueError("bad")

        with self.assertRaises(ValueError):
            await run_async_batch([broken()], concurrency_limit=0)


class TestBuildRunner(unittest.IsolatedAsyncioTestCase):
    async def test_premium_checks_registered_only_when_enabled(self):
        probe = CannedProbe(ProbeResponse.of(200))
        reporter = RecordingReporter()
        free_only = build_runner(PROD, probe=probe, reporter=reporter)
        self.assertTrue(all(check.descriptor.tier is CheckTier.FREE for check in free_only.checks))
        self.assertNotIn("premium_enabled", reporter.event_names())

        premium_ctx = PROD.with_property("prodguard.premium.enabled", "true")
        with_premium = build_runner(premium_ctx, probe=probe, reporter=reporter)
        tiers = {check.descriptor.tier for check in with_premium.checks}
        self.assertEqual(tiers, {CheckTier.FREE, CheckTier.PREMIUM})
        self.assertIn("premium_enabled", reporter.event_names())

    async def test_full_pass_against_insecure_service(self):
        ctx = (
            PROD.with_property("prodguard.premium.enabled", "true")
            .with_property("server.error.include-stacktrace", "always")
            .with_property("prodguard.severities.PG-005", "DISABLED")
        )
        probe = CannedProbe(ProbeResponse.of(200, {"Set-Cookie": ["a=1; HttpOnly", "b=2"]}))
        reporter = RecordingReporter()
        outcome = await build_runner(ctx, probe=probe, reporter=reporter).execute(ctx)

        codes = {item.code for item in outcome.findings}
        self.assertTrue(outcome.aborted)
        self.assertIn("PG-003", codes)
        self.assertIn("PG-205", codes)
        self.assertNotIn("PG-005", codes)
        self.assertEqual(len(probe.requests), 9)

    async def test_missing_port_reports_every_premium_check_without_network(self):
        ctx = StaticRuntimeContext(
            properties={"prodguard.premium.enabled": "true", "prodguard.report-only": "true"},
            active_profiles=("prod",),
        )
        probe = CannedProbe(ProbeResponse.of(200))
        reporter = RecordingReporter()
        outcome = await build_runner(ctx, probe=probe, reporter=reporter).execute(ctx)
        failures = [item for item in outcome.findings if item.result.is_verification_failure]
        self.assertEqual(len(failures), 9)
        self.assertEqual(probe.requests, [])
        self.assertEqual(outcome.decision, Decision.CONTINUE_WITH_WARNING)

    async def test_settings_concurrency_reaches_runner(self):
        ctx = PROD.with_property("prodguard.concurrency", "3")
        runner = build_runner(ctx, probe=CannedProbe(ProbeResponse.of(200)), reporter=RecordingReporter())
        self.assertEqual(runner.concurrency, 3)
        self.assertEqual(runner.concurrency, load_settings(ctx).concurrency)


class TestGuardStartup(unittest.TestCase):
    def test_blocking_host_hook_raises_on_abort(self):
        ctx = StaticRuntimeContext().with_profiles("production").with_port(8080).with_property(
            "management.endpoints.web.exposure.include", "*"
        )
        with self.assertRaises(StartupAbortedError) as caught:
            guard_startup(ctx, probe=CannedProbe(ProbeResponse.of(200)), reporter=RecordingReporter())
        self.assertIn("PG-004", caught.exception.outcome.blocking_codes)

    def test_blocking_host_hook_returns_outcome(self):
        ctx = StaticRuntimeContext(active_profiles=("dev",))
        outcome = guard_startup(ctx, probe=CannedProbe(ProbeResponse.of(200)), reporter=RecordingReporter())
        self.assertTrue(outcome.gated)

    def test_host_context_without_properties_mapping_applies_overrides(self):
        properties = {
            "management.endpoints.web.exposure.include": "*",
            "server.ssl.enabled": "true",
            "database.pool.max-size": "20",
            "prodguard.severities.PG-010": "DISABLED",
            "prodguard.severities.PG-004": "WARN",
        }
        ctx = types.SimpleNamespace(
            get_local_port=lambda: 8080,
            get_property=properties.get,
            get_active_profiles=lambda: ("prod",),
        )
        reporter = RecordingReporter()
        outcome = guard_startup(ctx, probe=CannedProbe(ProbeResponse.of(200)), reporter=reporter)
        self.assertEqual(outcome.decision, Decision.CONTINUE)
        findings = [(item.code, item.severity) for item in reporter.findings]
        self.assertEqual(findings, [("PG-004", EffectiveSeverity.WARN)])


class TestConsoleReporter(unittest.TestCase):
    def test_findings_and_events_are_printed_and_logged(self):
        with tempfile.TemporaryDirectory() as tmp:
            reporter = ConsoleReporter(Path(tmp))
            runner = GuardRunner(checks=[_check(ERROR_CHECK, "bad config")], reporter=reporter)
            stream = io.StringIO()
            with redirect_stdout(stream):
                outcome = asyncio.run(runner.execute(PROD))
            log_text = (Path(tmp) / FRAMEWORK_LOG_NAME).read_text(encoding="utf-8")

        self.assertTrue(outcome.aborted)
        self.assertIn("[prod-guard] ERROR PG-901 - bad config | fix it", stream.getvalue())
        self.assertIn("[ERROR] finding | severity=ERROR code=PG-901", log_text)
        self.assertIn("startup_aborted", log_text)

    def test_colour_codes_respect_no_color(self):
        with patch.dict(os.environ, {"NO_COLOR": ""}):
            self.assertEqual(c("ready", Colors.GREEN), f"{Colors.GREEN}ready{Colors.RESET}")
        with patch.dict(os.environ, {"NO_COLOR": "1"}):
            self.assertEqual(c(42, Colors.RED), "42")

    def test_log_dir_none_keeps_output_on_console(self):
        settings = GuardSettings(force=True, log_dir=None)
        runner = GuardRunner.from_settings([_check(CLEAN_CHECK)], settings)
        stream = io.StringIO()
        with patch("prodguard.output.append_framework_log") as append_log, redirect_stdout(stream):
            asyncio.run(runner.execute(StaticRuntimeContext()))
        append_log.assert_not_called()
        self.assertIn("no issues detected", stream.getvalue())


if __name__ == "__main__":
    unittest.main()
