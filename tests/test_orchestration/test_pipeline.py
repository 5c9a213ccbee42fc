"""
Tests for shipyard.orchestration.pipeline
===========================================

These tests verify the Pipeline, the resumable driver loop:
    - RUN_ONCE steps run once and are skipped on every later run
    - ALWAYS_RUN steps run every time and never get a marker
    - Writes and the marker are committed together, after the body
    - The first failure stops the run and is re-raised unmodified
    - A re-run resumes at the failed step
    - Requirements and declared outputs are enforced
    - Progress banners and the run report

Step bodies record their invocations in a list so tests can assert
exactly which bodies ran.
"""

from pathlib import Path

import pytest

from shipyard.core.enums import StepKind, StepStatus
from shipyard.core.exceptions import MissingSettingError, StepContractError
from shipyard.orchestration.pipeline import Pipeline
from shipyard.orchestration.progress import ProgressReporter
from shipyard.orchestration.settings_store import (
    InMemorySettingsStore,
    JsonFileSettingsStore,
)
from shipyard.orchestration.step_registry import StepRegistry


class Boom(RuntimeError):
    """Distinct error type so tests can check it is not wrapped."""


# =============================================================================
# Helpers
# =============================================================================
def _three_step_registry(calls: list[str], fail_on: set[str] | None = None) -> StepRegistry:
    """A (RUN_ONCE, writes x) → B (ALWAYS_RUN) → C (RUN_ONCE, requires x, writes y)."""
    fail_on = fail_on if fail_on is not None else set()
    registry = StepRegistry()

    @registry.step("A", produces=["x"])
    async def step_a(ctx):
        calls.append("A")
        if "A" in fail_on:
            raise Boom("A failed")
        return {"x": "1"}

    @registry.step("B", kind=StepKind.ALWAYS_RUN)
    async def step_b(ctx):
        calls.append("B")
        if "B" in fail_on:
            raise Boom("B failed")

    @registry.step("C", requires=["x"], produces=["y"])
    async def step_c(ctx):
        calls.append("C")
        if "C" in fail_on:
            raise Boom("C failed")
        x = await ctx.require("x")
        return {"y": f"{x}-y"}

    return registry


def _pipeline(registry, store) -> Pipeline:
    return Pipeline(registry, store, reporter=ProgressReporter(quiet=True))


# =============================================================================
# Test: RUN_ONCE idempotence
# =============================================================================
class TestRunOnce:
    """Tests for completion markers and skipping."""

    async def test_first_run_writes_value_and_marker(self, memory_store) -> None:
        """Empty store: A writes x="1" and A=true."""
        calls: list[str] = []
        registry = StepRegistry()

        @registry.step("A", produces=["x"])
        async def step_a(ctx):
            calls.append("A")
            return {"x": "1"}

        await _pipeline(registry, memory_store).run()

        assert calls == ["A"]
        assert await memory_store.snapshot() == {"x": "1", "A": True}

    async def test_rerun_skips_completed_step(self, memory_store) -> None:
        """Second run skips A without invoking it; x is unchanged."""
        calls: list[str] = []
        registry = _three_step_registry(calls)
        pipeline = _pipeline(registry, memory_store)

        await pipeline.run()
        calls.clear()
        report = await pipeline.run()

        assert calls == ["B"]
        assert report.skipped == ["A", "C"]
        assert report.executed == ["B"]
        assert await memory_store.get("x") == "1"

    async def test_rerun_document_is_unchanged(self, memory_store) -> None:
        calls: list[str] = []
        pipeline = _pipeline(_three_step_registry(calls), memory_store)
        await pipeline.run()
        before = await memory_store.snapshot()
        await pipeline.run()
        assert await memory_store.snapshot() == before

    async def test_falsy_marker_does_not_skip(self) -> None:
        store = InMemorySettingsStore({"A": False})
        calls: list[str] = []
        await _pipeline(_three_step_registry(calls), store).run()
        assert calls == ["A", "B", "C"]
        assert await store.get("A") is True

    async def test_preexisting_marker_skips_even_without_values(self) -> None:
        """A marker set by hand is trusted; the step is not re-run."""
        store = InMemorySettingsStore({"A": True, "x": "from-before"})
        calls: list[str] = []
        await _pipeline(_three_step_registry(calls), store).run()
        assert calls == ["B", "C"]
        assert await store.get("y") == "from-before-y"

    async def test_single_commit_per_step(self, memory_store) -> None:
        """Writes and marker land in one document write."""
        registry = StepRegistry()

        @registry.step("createAccount", produces=["address", "privateKey"])
        async def create_account(ctx):
            return {"address": "0xabc", "privateKey": "0xdef"}

        await _pipeline(registry, memory_store).run()
        assert memory_store.write_count == 1


# =============================================================================
# Test: ALWAYS_RUN
# =============================================================================
class TestAlwaysRun:
    """Tests for steps that execute on every run."""

    async def test_runs_every_time_without_marker(self, memory_store) -> None:
        calls: list[str] = []
        pipeline = _pipeline(_three_step_registry(calls), memory_store)
        await pipeline.run()
        await pipeline.run()
        await pipeline.run()
        assert calls.count("B") == 3
        assert "B" not in await memory_store.snapshot()

    async def test_writes_are_refreshed(self, memory_store) -> None:
        endpoints = iter(["nd-1", "nd-2"])
        registry = StepRegistry()

        @registry.step("deployBlockchainNode", kind=StepKind.ALWAYS_RUN, produces=["ambEndpoint"])
        async def deploy_node(ctx):
            return {"ambEndpoint": next(endpoints)}

        pipeline = _pipeline(registry, memory_store)
        await pipeline.run()
        await pipeline.run()
        assert await memory_store.snapshot() == {"ambEndpoint": "nd-2"}

    async def test_no_write_when_nothing_to_commit(self, memory_store) -> None:
        registry = StepRegistry()

        @registry.step("promptForEther", kind=StepKind.ALWAYS_RUN)
        async def prompt(ctx):
            return None

        await _pipeline(registry, memory_store).run()
        assert memory_store.write_count == 0


# =============================================================================
# Test: Failure and resume
# =============================================================================
class TestFailureAndResume:
    """Tests for stop-on-first-failure and resumption."""

    async def test_failure_is_reraised_unmodified(self, memory_store) -> None:
        calls: list[str] = []
        pipeline = _pipeline(_three_step_registry(calls, fail_on={"B"}), memory_store)

        with pytest.raises(Boom, match="B failed"):
            await pipeline.run()

        assert calls == ["A", "B"]

    async def test_partial_report_after_failure(self, memory_store) -> None:
        calls: list[str] = []
        pipeline = _pipeline(_three_step_registry(calls, fail_on={"C"}), memory_store)

        with pytest.raises(Boom):
            await pipeline.run()

        report = pipeline.last_report
        assert report.status == StepStatus.FAILED
        assert report.failed_step == "C"
        assert report.executed == ["A", "B"]
        failed = report.outcomes[-1]
        assert failed.error_type == "Boom"
        assert failed.error_message == "C failed"
        assert report.completed_at is not None

    async def test_failed_step_commits_nothing(self, memory_store) -> None:
        calls: list[str] = []
        pipeline = _pipeline(_three_step_registry(calls, fail_on={"C"}), memory_store)
        with pytest.raises(Boom):
            await pipeline.run()
        assert await memory_store.snapshot() == {"x": "1", "A": True}

    async def test_resume_reruns_failed_step_only(self, memory_store) -> None:
        """After C fails, the next run skips A, re-runs B and retries C."""
        calls: list[str] = []
        failing = {"C"}
        pipeline = _pipeline(_three_step_registry(calls, fail_on=failing), memory_store)

        with pytest.raises(Boom):
            await pipeline.run()

        failing.clear()
        calls.clear()
        report = await pipeline.run()

        assert calls == ["B", "C"]
        assert report.skipped == ["A"]
        assert await memory_store.snapshot() == {"x": "1", "A": True, "y": "1-y", "C": True}

    async def test_resume_across_processes(self, settings_path: Path) -> None:
        """A new Pipeline on the same file resumes where the old one stopped."""
        calls: list[str] = []
        with pytest.raises(Boom):
            await _pipeline(
                _three_step_registry(calls, fail_on={"C"}),
                JsonFileSettingsStore(settings_path),
            ).run()

        calls.clear()
        await _pipeline(_three_step_registry(calls), JsonFileSettingsStore(settings_path)).run()
        assert calls == ["B", "C"]

    async def test_keyboard_interrupt_propagates(self, memory_store) -> None:
        registry = StepRegistry()

        @registry.step("waitForEther", kind=StepKind.ALWAYS_RUN)
        async def wait(ctx):
            raise KeyboardInterrupt

        pipeline = _pipeline(registry, memory_store)
        with pytest.raises(KeyboardInterrupt):
            await pipeline.run()
        assert pipeline.last_report.failed_step == "waitForEther"

    async def test_corrupted_settings_start_from_scratch(self, settings_path: Path) -> None:
        settings_path.write_text("{ not json")
        calls: list[str] = []
        await _pipeline(_three_step_registry(calls), JsonFileSettingsStore(settings_path)).run()
        assert calls == ["A", "B", "C"]


# =============================================================================
# Test: Contract enforcement
# =============================================================================
class TestContracts:
    """Tests for requires/produces enforcement at run time."""

    async def test_missing_requirement_stops_before_body(self, memory_store) -> None:
        calls: list[str] = []
        registry = StepRegistry(seed_keys={"ambEndpoint", "address"})

        @registry.step("waitForEther", kind=StepKind.ALWAYS_RUN, requires=["address", "ambEndpoint"])
        async def wait(ctx):
            calls.append("waitForEther")

        with pytest.raises(MissingSettingError) as exc_info:
            await _pipeline(registry, memory_store).run()

        assert calls == []
        assert exc_info.value.keys == ["address", "ambEndpoint"]
        assert exc_info.value.step_name == "waitForEther"

    async def test_none_value_counts_as_missing(self) -> None:
        store = InMemorySettingsStore({"address": None})
        registry = StepRegistry(seed_keys={"address"})

        @registry.step("promptForEther", kind=StepKind.ALWAYS_RUN, requires=["address"])
        async def prompt(ctx):
            return None

        with pytest.raises(MissingSettingError):
            await _pipeline(registry, store).run()

    async def test_undeclared_write_rejected(self, memory_store) -> None:
        registry = StepRegistry()

        @registry.step("createAccount", produces=["address"])
        async def create_account(ctx):
            return {"address": "0xabc", "privateKey": "0xdef"}

        with pytest.raises(StepContractError) as exc_info:
            await _pipeline(registry, memory_store).run()

        assert exc_info.value.details["undeclared"] == ["privateKey"]
        assert await memory_store.snapshot() == {}

    async def test_missing_declared_write_rejected(self, memory_store) -> None:
        registry = StepRegistry()

        @registry.step("deployContract", produces=["contractAddress"])
        async def deploy_contract(ctx):
            return None

        with pytest.raises(StepContractError) as exc_info:
            await _pipeline(registry, memory_store).run()

        assert exc_info.value.details["missing"] == ["contractAddress"]
        assert "deployContract" not in await memory_store.snapshot()


# =============================================================================
# Test: Reporting
# =============================================================================
class TestReporting:
    """Tests for banners, the report and completion status."""

    async def test_report_on_success(self, memory_store) -> None:
        calls: list[str] = []
        pipeline = _pipeline(_three_step_registry(calls), memory_store)
        report = await pipeline.run()
        assert report.status == StepStatus.COMPLETED
        assert report.executed == ["A", "B", "C"]
        assert pipeline.last_report is report
        assert report.outcomes[0].written_keys == ["x"]
        assert report.outcomes[0].duration_seconds is not None

    async def test_banners(self, memory_store, capsys) -> None:
        registry = StepRegistry()

        @registry.step("compileContract", title="Compile Contract")
        async def compile_contract(ctx):
            return None

        pipeline = Pipeline(registry, memory_store, reporter=ProgressReporter())
        await pipeline.run()
        out = capsys.readouterr().out
        assert "⌛ Compile Contract" in out
        assert "🙌 Compile Contract Complete" in out

        await pipeline.run()
        out = capsys.readouterr().out
        assert "Skipping compileContract since it has already been completed" in out

    async def test_quiet_reporter_prints_nothing(self, memory_store, capsys) -> None:
        await _pipeline(_three_step_registry([]), memory_store).run()
        assert capsys.readouterr().out == ""

    async def test_completion_status(self, memory_store) -> None:
        calls: list[str] = []
        pipeline = _pipeline(_three_step_registry(calls, fail_on={"C"}), memory_store)
        with pytest.raises(Boom):
            await pipeline.run()

        status = [(step.name, done) for step, done in await pipeline.completion_status()]
        assert status == [("A", True), ("B", False), ("C", False)]
