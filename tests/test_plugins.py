# ============================================================================
# PLUGIN TESTS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Tests - Core and optional plugins
# PURPOSE: Verify runner, aggregator, thresholds and history plugins in a kernel
# CREATED: 17 OCT 2026
# ============================================================================
"""
Plugin Tests

Covers:
1. RunnerPlugin: registration, execution, results, metrics, scheduling
2. AggregatorPlugin: live status, status:changed
3. ThresholdsPlugin: partial updates, validation, reset
4. HistoryPlugin: bounded history, trends, clearing

Run with:
    pytest tests/test_plugins.py -v
"""

import asyncio

import pytest
from unittest.mock import MagicMock

from core.contracts import ProbeStatus, TrendDirection
from core.errors import InvalidConfigError, MissingDependencyError
from core.models.probe import ProbeDefinition, ProbeOutcome
from kernel.events import KernelEvent
from kernel.kernel import create_health_kernel
from plugins import (
    AggregatorPlugin,
    HistoryEntry,
    HistoryPlugin,
    HistoryService,
    RunnerPlugin,
    ThresholdsPlugin,
    core_plugins,
)


# ============================================================================
# FIXTURES
# ============================================================================

def make_kernel(*extra_plugins, **options):
    """Kernel with runner + aggregator and fast, no-retry defaults."""
    settings = {"retries": 0, "retry_backoff_ms": 0, "interval": "1h"}
    settings.update(options)
    kernel = create_health_kernel(**settings)
    for plugin in core_plugins():
        kernel.use(plugin)
    for plugin in extra_plugins:
        kernel.use(plugin)
    return kernel


async def healthy_probe():
    return True


async def failing_probe():
    raise ConnectionError("connection refused")


@pytest.fixture
def kernel():
    return make_kernel()


@pytest.fixture
def context(kernel):
    return kernel.get_context()


# ============================================================================
# RUNNER
# ============================================================================

class TestRunnerPlugin:
    """RunnerPlugin / RunnerService"""

    def test_register_and_list(self, kernel, context):
        handler = MagicMock()
        kernel.on(KernelEvent.PROBE_REGISTERED, handler)

        definition = context.runner.register("db", healthy_probe, critical=True, weight=60)

        assert context.runner.list() == ["db"]
        assert context.runner.get("db") is definition
        assert definition.critical is True
        payload = handler.call_args.args[0]
        assert payload["name"] == "db"
        assert payload["definition"] is definition

    def test_reregister_replaces(self, context):
        context.runner.register("db", healthy_probe)
        context.runner.register("db", failing_probe, retries=1)

        assert context.runner.list() == ["db"]
        assert context.runner.get("db").probe is failing_probe

    def test_register_rejects_non_callable(self, context):
        with pytest.raises(TypeError):
            context.runner.register("db", 42)

    def test_run_stores_result_and_emits(self, kernel, context):
        completed = MagicMock()
        kernel.on(KernelEvent.PROBE_COMPLETED, completed)
        context.runner.register("db", healthy_probe)

        record = asyncio.run(context.runner.run("db"))

        assert context.results["db"] is record
        payload = completed.call_args.args[0]
        assert payload["name"] == "db"
        assert payload["outcome"].status == ProbeStatus.HEALTHY
        assert payload["attempts"] == 1
        assert payload["duration_ms"] == record.duration_ms

    def test_run_unknown_probe(self, context):
        with pytest.raises(KeyError):
            asyncio.run(context.runner.run("missing"))

    def test_metrics_accumulate(self, context):
        context.runner.register("db", healthy_probe)
        context.runner.register("cache", failing_probe)

        async def run():
            await context.runner.run("db")
            await context.runner.run("db")
            await context.runner.run("cache")

        asyncio.run(run())

        assert context.metrics.checks["db"].success == 2
        assert context.metrics.checks["cache"].failure == 1
        assert context.metrics.checks["cache"].last_status == ProbeStatus.UNHEALTHY
        assert context.metrics.to_dict()["checks"]["db"]["success"] == 2

    def test_unregister_drops_state(self, kernel, context):
        removed = MagicMock()
        kernel.on(KernelEvent.PROBE_UNREGISTERED, removed)
        context.runner.register("db", healthy_probe)
        asyncio.run(context.runner.run("db"))

        assert context.runner.unregister("db") is True
        assert context.runner.unregister("db") is False

        assert "db" not in context.results
        assert "db" not in context.metrics.checks
        removed.assert_called_once_with({"name": "db"})

    def test_run_all_sequential_stop_on_failure(self, context):
        third = MagicMock(return_value=True)
        context.runner.register("first", healthy_probe)
        context.runner.register("second", failing_probe)
        context.runner.register("third", third)

        records = asyncio.run(context.runner.run_all(parallel=False, stop_on_failure=True))

        assert list(records) == ["first", "second"]
        third.assert_not_called()
        assert "third" not in context.results

    def test_run_with_concurrency(self, context):
        for name in ("a", "b", "c"):
            context.runner.register(name, healthy_probe)

        records = asyncio.run(context.runner.run_with_concurrency(limit=1))

        assert set(records) == {"a", "b", "c"}
        assert set(context.results) == {"a", "b", "c"}

    def test_probes_from_options_registered(self):
        kernel = make_kernel(probes={"db": healthy_probe, "cache": {"probe": healthy_probe, "weight": 30}})
        context = kernel.get_context()

        assert context.runner.list() == ["db", "cache"]
        assert context.runner.get("cache").weight == 30

    def test_runner_timeout_override(self):
        kernel = create_health_kernel(timeout_ms=5000)
        plugin = RunnerPlugin(timeout_ms=250, retries=0)
        kernel.use(plugin)

        assert plugin.service.executor.default_timeout_ms == 250
        assert plugin.service.executor.default_retries == 0

    def test_init_schedules_and_destroy_stops(self, kernel, context):
        calls = []

        async def probe():
            calls.append(1)
            return True

        context.runner.register("db", probe, interval_ms=10)

        async def run():
            await kernel.init()
            await asyncio.sleep(0.05)
            await kernel.destroy()
            count = len(calls)
            await asyncio.sleep(0.03)
            return count

        count_at_destroy = asyncio.run(run())

        assert count_at_destroy >= 2
        assert len(calls) == count_at_destroy
        assert "db" in context.results

    def test_register_after_init_is_scheduled(self, kernel, context):
        async def run():
            await kernel.init()
            context.runner.register("late", healthy_probe)
            await asyncio.sleep(0.01)
            names = context.runner.scheduler.scheduled_names()
            await kernel.destroy()
            return names

        assert asyncio.run(run()) == ["late"]
        assert context.results["late"].status == ProbeStatus.HEALTHY

    def test_result_for_unregistered_probe_discarded(self, kernel, context):
        completed = MagicMock()
        kernel.on(KernelEvent.PROBE_COMPLETED, completed)
        definition = context.runner.register("db", healthy_probe)
        context.runner.unregister("db")

        asyncio.run(context.runner.execute("db", definition))

        assert "db" not in context.results
        completed.assert_not_called()


# ============================================================================
# AGGREGATOR
# ============================================================================

class TestAggregatorPlugin:
    """AggregatorPlugin / AggregatorService"""

    def test_requires_runner(self):
        kernel = create_health_kernel()

        with pytest.raises(MissingDependencyError):
            kernel.use(AggregatorPlugin())

    def test_initial_status(self, context):
        assert context.status.status == ProbeStatus.HEALTHY
        assert context.status.score == 100

    def test_status_follows_results(self, kernel, context):
        changes = MagicMock()
        kernel.on(KernelEvent.STATUS_CHANGED, changes)
        context.runner.register("db", failing_probe, critical=True)
        context.runner.register("cache", healthy_probe)

        asyncio.run(context.runner.run_all())

        assert context.status.status == ProbeStatus.UNHEALTHY
        assert context.metrics.score == 50
        payload = changes.call_args.args[0]
        assert payload["previous"] == ProbeStatus.HEALTHY
        assert payload["current"] == ProbeStatus.UNHEALTHY
        changes.assert_called_once()

    def test_unregister_refreshes_status(self, context):
        context.runner.register("db", failing_probe)
        asyncio.run(context.runner.run("db"))
        assert context.status.status == ProbeStatus.UNHEALTHY

        context.runner.unregister("db")

        assert context.status.status == ProbeStatus.HEALTHY
        assert context.status.checks == {}

    def test_no_event_when_status_unchanged(self, kernel, context):
        changes = MagicMock()
        kernel.on(KernelEvent.STATUS_CHANGED, changes)
        context.runner.register("db", healthy_probe)

        asyncio.run(context.runner.run("db"))

        changes.assert_not_called()

    def test_custom_thresholds(self):
        kernel = make_kernel(thresholds={"healthy": 90, "degraded": 40})
        thresholds = kernel.get_context().aggregator.get_thresholds()

        assert thresholds.healthy == 90
        assert thresholds.degraded == 40

    def test_set_thresholds_refreshes(self, context):
        async def degraded_probe():
            return ProbeOutcome.degraded("slow")

        context.runner.register("api", degraded_probe)
        asyncio.run(context.runner.run("api"))
        assert context.status.status == ProbeStatus.DEGRADED

        context.aggregator.set_thresholds(healthy=50)

        assert context.status.status == ProbeStatus.HEALTHY


# ============================================================================
# THRESHOLDS
# ============================================================================

class TestThresholdsPlugin:
    """ThresholdsPlugin / ThresholdsService"""

    def test_requires_aggregator(self):
        kernel = create_health_kernel()
        kernel.use(RunnerPlugin())

        with pytest.raises(MissingDependencyError):
            kernel.use(ThresholdsPlugin())

    def test_install_applies_initial_values(self):
        kernel = make_kernel(ThresholdsPlugin(healthy=90))
        context = kernel.get_context()

        assert context.thresholds.get().healthy == 90
        assert context.thresholds.get().degraded == 50
        assert context.aggregator.get_thresholds().healthy == 90

    def test_set_keeps_unspecified(self):
        kernel = make_kernel(ThresholdsPlugin())
        context = kernel.get_context()
        changed = MagicMock()
        kernel.on(KernelEvent.THRESHOLDS_CHANGED, changed)

        context.thresholds.set(degraded=30)

        assert context.thresholds.get().healthy == 80
        assert context.thresholds.get().degraded == 30
        assert context.options.thresholds.degraded == 30
        changed.assert_called_once_with({"healthy": 80, "degraded": 30})

    @pytest.mark.parametrize("kwargs", [{"healthy": 150}, {"degraded": -5}, {"healthy": True}])
    def test_invalid_values_rejected(self, kwargs):
        kernel = make_kernel(ThresholdsPlugin())
        context = kernel.get_context()

        with pytest.raises(InvalidConfigError):
            context.thresholds.set(**kwargs)
        assert context.thresholds.get().model_dump() == {"healthy": 80, "degraded": 50}

    def test_invalid_initial_value_rejected(self):
        kernel = make_kernel()

        with pytest.raises(InvalidConfigError):
            kernel.use(ThresholdsPlugin(healthy=101))

    def test_reset_restores_installed_values(self):
        kernel = make_kernel(ThresholdsPlugin(healthy=85, degraded=45))
        context = kernel.get_context()
        reset = MagicMock()
        kernel.on(KernelEvent.THRESHOLDS_RESET, reset)

        context.thresholds.set(healthy=60, degraded=20)
        context.thresholds.reset()

        assert context.thresholds.get().model_dump() == {"healthy": 85, "degraded": 45}
        reset.assert_called_once_with({"healthy": 85, "degraded": 45})


# ============================================================================
# HISTORY
# ============================================================================

def entry(name, status, duration_ms=10.0):
    return HistoryEntry(name=name, outcome=ProbeOutcome(status=status), duration_ms=duration_ms)


class TestHistoryPlugin:
    """HistoryPlugin / HistoryService"""

    def test_records_completed_executions(self):
        kernel = make_kernel(HistoryPlugin())
        context = kernel.get_context()
        context.runner.register("db", healthy_probe)
        context.runner.register("cache", failing_probe)

        async def run():
            await context.runner.run("db")
            await context.runner.run("cache")
            await context.runner.run("db")

        asyncio.run(run())

        assert len(context.history.get_check_history("db")) == 2
        assert [e.name for e in context.history.get_overall_history()] == ["db", "cache", "db"]
        assert context.history.get_check_history("cache")[0].is_success is False

    def test_unregistered_probe_history_dropped(self):
        kernel = make_kernel(HistoryPlugin())
        context = kernel.get_context()
        context.runner.register("db", healthy_probe)
        context.runner.register("cache", healthy_probe)
        asyncio.run(context.runner.run_all())

        context.runner.unregister("db")

        assert context.history.get_check_history("db") == []
        assert len(context.history.get_check_history("cache")) == 1
        assert len(context.history.get_overall_history()) == 2
        assert "db" not in context.history._per_check

    def test_bounds(self):
        service = HistoryService(MagicMock(), max_entries=3, max_per_check=2)
        for _ in range(3):
            service.record(entry("db", ProbeStatus.HEALTHY))
        service.record(entry("cache", ProbeStatus.HEALTHY))

        assert len(service.get_check_history("db")) == 2
        assert len(service.get_overall_history()) == 3
        assert service.get_overall_history()[-1].name == "cache"

    def test_defaults_from_environment_defaults(self):
        plugin = HistoryPlugin()

        assert plugin.max_entries == 100
        assert plugin.max_per_check == 50

    def test_clear(self):
        emit = MagicMock()
        service = HistoryService(emit, max_entries=10, max_per_check=10)
        service.record(entry("db", ProbeStatus.HEALTHY))
        service.record(entry("cache", ProbeStatus.HEALTHY))

        service.clear_check_history("db")
        assert service.get_check_history("db") == []
        assert len(service.get_overall_history()) == 2
        emit.assert_called_with(KernelEvent.HISTORY_CHECK_CLEARED, {"name": "db"})

        service.clear_history()
        assert service.get_overall_history() == []
        emit.assert_called_with(KernelEvent.HISTORY_CLEARED, {})

    def test_trends_empty(self):
        service = HistoryService(MagicMock(), max_entries=10, max_per_check=10)
        trend = service.get_trends("db")

        assert trend.avg_latency_ms == 0
        assert trend.success_rate == 100
        assert trend.direction == TrendDirection.STABLE

    def test_trend_improving(self):
        service = HistoryService(MagicMock(), max_entries=10, max_per_check=10)
        for status in (ProbeStatus.UNHEALTHY, ProbeStatus.UNHEALTHY,
                       ProbeStatus.HEALTHY, ProbeStatus.HEALTHY):
            service.record(entry("db", status, duration_ms=15.0))

        trend = service.get_trends("db")

        assert trend.direction == TrendDirection.IMPROVING
        assert trend.success_rate == 50
        assert trend.avg_latency_ms == 15
        assert trend.samples == 4

    def test_trend_degrading(self):
        service = HistoryService(MagicMock(), max_entries=10, max_per_check=10)
        for status in (ProbeStatus.HEALTHY, ProbeStatus.HEALTHY,
                       ProbeStatus.HEALTHY, ProbeStatus.UNHEALTHY):
            service.record(entry("db", status))

        assert service.get_trends("db").direction == TrendDirection.DEGRADING

    def test_single_sample_is_stable(self):
        service = HistoryService(MagicMock(), max_entries=10, max_per_check=10)
        service.record(entry("db", ProbeStatus.UNHEALTHY))

        assert service.get_trends("db").direction == TrendDirection.STABLE

    def test_degraded_counts_as_failure(self):
        service = HistoryService(MagicMock(), max_entries=10, max_per_check=10)
        service.record(entry("db", ProbeStatus.DEGRADED))

        assert service.get_trends("db").success_rate == 0


class TestDefinitionsInRegistry:
    """Definitions passed through plugins stay typed."""

    def test_definition_instance_accepted(self, context):
        definition = ProbeDefinition(probe=healthy_probe, timeout_ms=100)
        stored = context.runner.register("db", definition)

        assert stored.timeout_ms == 100
