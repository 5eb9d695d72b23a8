# ============================================================================
# INTERVAL SCHEDULER
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Per-probe repeating execution
# PURPOSE: Re-trigger each probe on its own cadence until shutdown
# CREATED: 17 OCT 2026
# ============================================================================
"""
Interval Scheduler

One asyncio task per probe. Each task executes its probe immediately
(cold-start warm-up) and then again every interval, measured from the end
of the previous execution so runs of the same probe never overlap.

Invariants:
- At most one live task per probe name
- schedule()/unschedule() swap tasks without awaiting, so no other
  coroutine can observe zero or two tasks for a name
- stop() returns only after every task has finished cancelling
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set

from core.logging import log_context
from core.models.probe import ProbeDefinition

logger = logging.getLogger(__name__)


ExecuteCallback = Callable[[str, ProbeDefinition], Awaitable[Any]]


class IntervalScheduler:
    """Runs every probe on an independent repeating timer."""

    MIN_INTERVAL_MS = 1

    def __init__(self, execute: ExecuteCallback, default_interval_ms: int):
        """
        Initialize scheduler.

        Args:
            execute: Coroutine function run for each tick (name, definition)
            default_interval_ms: Interval for probes without interval_ms
        """
        self._execute = execute
        self.default_interval_ms = default_interval_ms
        self._tasks: Dict[str, asyncio.Task] = {}
        # Cancelled but not yet finished
        self._retiring: Set[asyncio.Task] = set()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def scheduled_names(self) -> List[str]:
        """Names with a live timer task."""
        return list(self._tasks)

    def resolve_interval_ms(self, definition: ProbeDefinition) -> int:
        """Probe interval, falling back to the global default, at least 1ms."""
        interval = definition.interval_ms
        if interval is None:
            interval = self.default_interval_ms
        return max(self.MIN_INTERVAL_MS, int(interval))

    def start(self, probes: Mapping[str, ProbeDefinition]) -> None:
        """
        Start a timer for every probe.

        Must be called with a running event loop.
        """
        if self._running:
            logger.warning("Scheduler already running")
            return

        asyncio.get_running_loop()
        self._running = True
        for name, definition in list(probes.items()):
            self._spawn(name, definition)

        logger.info(f"Scheduler started with {len(self._tasks)} probe(s)")

    def schedule(self, name: str, definition: ProbeDefinition) -> None:
        """
        Create or replace the timer for one probe.

        No-op until start() has been called.
        """
        if not self._running:
            return
        self._cancel(name)
        self._spawn(name, definition)

    def unschedule(self, name: str) -> bool:
        """
        Cancel the timer for one probe.

        Returns:
            True if a timer was cancelled
        """
        return self._cancel(name)

    async def stop(self) -> None:
        """Cancel every timer and wait for the tasks to finish."""
        self._running = False
        tasks = list(self._tasks.values()) + list(self._retiring)
        self._tasks.clear()
        self._retiring.clear()

        for task in tasks:
            task.cancel()

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Scheduled task ended with error: {result}")

        logger.info(f"Scheduler stopped ({len(tasks)} timer(s) cancelled)")

    def _spawn(self, name: str, definition: ProbeDefinition) -> None:
        interval_ms = self.resolve_interval_ms(definition)
        self._tasks[name] = asyncio.create_task(
            self._probe_loop(name, definition, interval_ms),
            name=f"probe-timer:{name}",
        )
        logger.debug(f"Scheduled probe {name} every {interval_ms}ms")

    def _cancel(self, name: str) -> bool:
        task: Optional[asyncio.Task] = self._tasks.pop(name, None)
        if task is None:
            return False
        task.cancel()
        if not task.done():
            self._retiring.add(task)
            task.add_done_callback(self._retiring.discard)
        logger.debug(f"Unscheduled probe {name}")
        return True

    async def _probe_loop(self, name: str, definition: ProbeDefinition, interval_ms: int) -> None:
        with log_context(probe_name=name, component="scheduler"):
            while True:
                try:
                    await self._execute(name, definition)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.exception(f"Scheduled execution of {name} failed: {e}")

                await asyncio.sleep(interval_ms / 1000)


__all__ = [
    "IntervalScheduler",
    "ExecuteCallback",
]
