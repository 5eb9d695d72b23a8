# ============================================================================
# RUNNER PLUGIN
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Plugin - Core
# PURPOSE: Probe registration, execution and interval scheduling
# CREATED: 17 OCT 2026
# ============================================================================
"""
Runner Plugin

Installs into the context:
- context.runner: RunnerService (register/unregister/run/run_all)

Every completed execution, manual or scheduled:
1. stores the record as the probe's latest result
2. updates the probe's metrics
3. emits probe:completed {name, outcome, duration_ms, attempts}

Records for probes unregistered while their execution was in flight are
discarded.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from core.models.probe import ExecutionRecord, ProbeDefinition
from health.executor import ProbeExecutor
from health.registry import build_definition
from health.scheduler import IntervalScheduler
from kernel.context import HealthContext
from kernel.events import KernelEvent
from kernel.plugin import KernelPlugin

logger = logging.getLogger(__name__)


class RunnerService:
    """Probe management and execution bound to one kernel context."""

    def __init__(
        self,
        context: HealthContext,
        executor: ProbeExecutor,
        emit: Callable[..., Any],
    ):
        self._context = context
        self._emit = emit
        self.executor = executor
        self.scheduler = IntervalScheduler(self.execute, context.options.interval_ms)

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, name: str, probe: Any, **settings) -> ProbeDefinition:
        """
        Register or replace a probe and (re)start its timer if scheduling.

        Args:
            name: Probe name
            probe: Callable, dict or ProbeDefinition
            **settings: ProbeDefinition fields (timeout_ms, retries, critical,
                weight, interval_ms)
        """
        definition = build_definition(probe, **settings)
        replaced = self._context.probes.register(name, definition)
        self.scheduler.schedule(name, definition)

        if replaced:
            logger.info(f"Probe '{name}' re-registered")
        else:
            logger.info(f"Probe '{name}' registered")

        self._emit(KernelEvent.PROBE_REGISTERED, {"name": name, "definition": definition})
        return definition

    def unregister(self, name: str) -> bool:
        """
        Remove a probe, cancel its timer and drop its latest result.

        Returns:
            True if the probe was registered
        """
        removed = self._context.probes.unregister(name)
        self.scheduler.unschedule(name)
        self._context.results.pop(name, None)
        self._context.metrics.forget(name)

        if removed:
            logger.info(f"Probe '{name}' unregistered")
            self._emit(KernelEvent.PROBE_UNREGISTERED, {"name": name})
        return removed

    def list(self) -> List[str]:
        """Registered probe names in registration order."""
        return self._context.probes.names()

    def get(self, name: str) -> Optional[ProbeDefinition]:
        return self._context.probes.get(name)

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def execute(self, name: str, definition: ProbeDefinition) -> ExecutionRecord:
        """Execute one probe and publish the result."""
        record = await self.executor.execute(name, definition)
        self._complete(record)
        return record

    async def run(self, name: str) -> ExecutionRecord:
        """
        Execute a registered probe now.

        Raises:
            KeyError: Probe not registered
        """
        definition = self._context.probes.get(name)
        if definition is None:
            raise KeyError(f"Probe not registered: {name}")
        return await self.execute(name, definition)

    async def run_all(
        self,
        parallel: bool = True,
        stop_on_failure: bool = False,
    ) -> Dict[str, ExecutionRecord]:
        """Execute every registered probe (see ProbeExecutor.run_all)."""
        return await self.executor.run_all(
            self._context.probes.items(),
            parallel=parallel,
            stop_on_failure=stop_on_failure,
            on_complete=self._complete,
        )

    async def run_with_concurrency(self, limit: int) -> Dict[str, ExecutionRecord]:
        """Execute every registered probe, at most `limit` at a time."""
        return await self.executor.run_with_concurrency(
            self._context.probes.items(),
            limit,
            on_complete=self._complete,
        )

    def _complete(self, record: ExecutionRecord) -> None:
        if record.name not in self._context.probes:
            logger.debug(f"Discarding result for unregistered probe '{record.name}'")
            return

        self._context.results[record.name] = record
        self._context.metrics.record(record)
        self._emit(KernelEvent.PROBE_COMPLETED, {
            "name": record.name,
            "outcome": record.outcome,
            "duration_ms": record.duration_ms,
            "attempts": record.attempts,
            "record": record,
        })


class RunnerPlugin(KernelPlugin):
    """
    Core plugin executing probes.

    Args:
        timeout_ms: Override options.timeout_ms for this runner
        retries: Override options.retries for this runner
    """

    name = "runner"
    dependencies = ()

    def __init__(self, timeout_ms: Optional[int] = None, retries: Optional[int] = None):
        self.timeout_ms = timeout_ms
        self.retries = retries
        self.service: Optional[RunnerService] = None

    def install(self, kernel) -> None:
        context = kernel.get_context()
        options = context.options

        executor = ProbeExecutor(
            default_timeout_ms=self.timeout_ms or options.timeout_ms,
            default_retries=self.retries if self.retries is not None else options.retries,
            retry_backoff_ms=options.retry_backoff_ms,
            max_workers=options.max_workers,
        )
        self.service = RunnerService(context, executor, kernel.emit)
        context.runner = self.service

        for probe_name, definition in options.probes.items():
            context.probes.register(probe_name, definition)

        kernel.emit(KernelEvent.RUNNER_INSTALLED, {
            "executor": executor,
            "scheduler": self.service.scheduler,
        })

    def on_init(self, context: HealthContext) -> None:
        self.service.scheduler.start(context.probes.as_dict())
        context.logger.info(f"Runner plugin initialized with {len(context.probes)} probe(s)")

    async def on_destroy(self) -> None:
        if self.service is None:
            return
        await self.service.scheduler.stop()
        self.service.executor.close()


__all__ = [
    "RunnerService",
    "RunnerPlugin",
]
