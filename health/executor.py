# ============================================================================
# PROBE EXECUTOR
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Probe execution engine
# PURPOSE: Execute probes with timeouts, linear-backoff retry and batching
# CREATED: 17 OCT 2026
# ============================================================================
"""
Probe Executor

Executes probes with:
- Per-attempt timeout (timeouts are never retried)
- Retry with linear backoff for raised errors and unhealthy verdicts
- Parallel, bounded-concurrency or sequential batch execution
- One normalization point for every probe result shape

Execution Strategy:
1. run_once(): one attempt raced against the deadline
2. run(): attempt sequence, raises CheckTimeoutError / CheckFailedError
3. execute(): run() with probe-level errors folded into an unhealthy record
4. run_all() / run_with_concurrency(): execute() over many probes; a bad
   probe never aborts its siblings

Async probes run on the event loop. Each sync probe attempt gets its own
daemon thread so a blocking probe cannot stall the loop. At most
max_workers sync attempts are awaited at once; the deadline starts when
the thread is running, so waiting for a slot never counts against it.
A timed-out attempt is abandoned: its task is cancelled, its thread cannot
be stopped but gives its slot back, and its late result is discarded.
"""

import asyncio
import inspect
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from core.contracts import ProbeStatus
from core.errors import CheckFailedError, CheckTimeoutError, describe_error
from core.logging import log_context
from core.models.probe import ExecutionRecord, ProbeDefinition, ProbeOutcome

logger = logging.getLogger(__name__)


ProbeSet = Union[Mapping[str, ProbeDefinition], Iterable[Tuple[str, ProbeDefinition]]]
RecordCallback = Callable[[ExecutionRecord], None]


class ProbeUnhealthyError(Exception):
    """Attempt returned an unhealthy verdict; counts as a failed attempt."""

    def __init__(self, outcome: ProbeOutcome):
        self.outcome = outcome
        super().__init__(outcome.error or "Probe reported unhealthy")


def _probe_items(probes: ProbeSet) -> List[Tuple[str, ProbeDefinition]]:
    if hasattr(probes, "items"):
        return list(probes.items())
    return list(probes)


def _consume_result(task: "asyncio.Future[Any]") -> None:
    # Abandoned attempts may finish with an error nobody awaits
    if not task.cancelled():
        task.exception()


def _settle(future: "asyncio.Future[Any]", value: Any, error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(value)


class ProbeExecutor:
    """
    Executes probes with timeouts and retries.

    Sync probes run on short-lived daemon threads, at most max_workers
    awaited at a time. close() refuses further sync attempts.
    """

    def __init__(
        self,
        default_timeout_ms: int = 5000,
        default_retries: int = 2,
        retry_backoff_ms: int = 100,
        max_workers: int = 10,
    ):
        """
        Initialize executor.

        Args:
            default_timeout_ms: Deadline for probes without their own
            default_retries: Retry count for probes without their own
            retry_backoff_ms: Backoff step; attempt N waits N * step
            max_workers: Sync probe attempts awaited at once
        """
        self.default_timeout_ms = default_timeout_ms
        self.default_retries = default_retries
        self.retry_backoff_ms = retry_backoff_ms
        self.max_workers = max_workers
        self._slots: Optional[Tuple[asyncio.AbstractEventLoop, asyncio.Semaphore]] = None
        self._closed = False

    # =========================================================================
    # NORMALIZATION
    # =========================================================================

    @staticmethod
    def normalize_outcome(value: Any) -> ProbeOutcome:
        """
        Turn any supported probe result into a ProbeOutcome.

        None / True -> healthy, False -> unhealthy, ProbeOutcome passes
        through, dict is validated. Anything else raises ValueError.
        """
        if value is None or value is True:
            return ProbeOutcome(status=ProbeStatus.HEALTHY)
        if value is False:
            return ProbeOutcome(status=ProbeStatus.UNHEALTHY)
        if isinstance(value, ProbeOutcome):
            return value
        if isinstance(value, dict):
            return ProbeOutcome.model_validate(value)
        raise ValueError(f"Unsupported probe result type: {type(value).__name__}")

    def _apply_definition(
        self,
        outcome: ProbeOutcome,
        definition: ProbeDefinition,
    ) -> ProbeOutcome:
        """Fill weight/critical from the definition unless the outcome set them."""
        update: Dict[str, Any] = {}
        if outcome.weight is None and definition.weight is not None:
            update["weight"] = definition.weight
        if outcome.critical is None:
            update["critical"] = definition.critical
        if not update:
            return outcome
        return outcome.model_copy(update=update)

    # =========================================================================
    # SINGLE PROBE
    # =========================================================================

    async def _resolve(self, start: Callable[[], Awaitable[Any]]) -> ProbeOutcome:
        result = await start()
        if inspect.isawaitable(result):
            result = await result
        return self.normalize_outcome(result)

    def _worker_slots(self) -> asyncio.Semaphore:
        # A semaphore is bound to the loop it first waits on
        loop = asyncio.get_running_loop()
        if self._slots is None or self._slots[0] is not loop:
            self._slots = (loop, asyncio.Semaphore(self.max_workers))
        return self._slots[1]

    def _start_thread(self, name: str, probe: Callable[..., Any]) -> "asyncio.Future[Any]":
        """Call a sync probe on its own daemon thread; the result lands in a loop future."""
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(value: Any = None, error: Optional[BaseException] = None) -> None:
            try:
                loop.call_soon_threadsafe(_settle, future, value, error)
            except RuntimeError:
                # Loop already closed; the attempt was abandoned
                return

        def target() -> None:
            try:
                value = probe()
            except Exception as e:
                deliver(error=e)
            else:
                deliver(value=value)

        threading.Thread(target=target, name=f"probe-{name}", daemon=True).start()
        return future

    async def _race(
        self,
        name: str,
        pending: Awaitable[ProbeOutcome],
        timeout_ms: int,
    ) -> ProbeOutcome:
        task = asyncio.ensure_future(pending)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task not in done:
            task.cancel()
            task.add_done_callback(_consume_result)
            raise CheckTimeoutError(name, timeout_ms)

        try:
            return task.result()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise CheckFailedError(name, e) from e

    async def run_once(
        self,
        name: str,
        probe: Callable[..., Any],
        timeout_ms: int,
    ) -> ProbeOutcome:
        """
        Run one attempt against its deadline.

        A sync probe first waits for a worker slot; the deadline covers only
        the time its thread is running.

        Returns:
            The normalized outcome (which may be unhealthy)

        Raises:
            CheckTimeoutError: Deadline elapsed first
            CheckFailedError: Probe raised or returned an unsupported shape
        """
        if inspect.iscoroutinefunction(probe):
            return await self._race(name, self._resolve(probe), timeout_ms)

        if self._closed:
            raise CheckFailedError(name, RuntimeError("Executor is closed"))

        async with self._worker_slots():
            started = self._start_thread(name, probe)
            return await self._race(name, self._resolve(lambda: started), timeout_ms)

    async def run(self, name: str, definition: ProbeDefinition) -> ExecutionRecord:
        """
        Run a probe with retries.

        Raised errors and unhealthy verdicts are retried up to `retries`
        extra times, sleeping retry_backoff_ms * attempt in between.

        Raises:
            CheckTimeoutError: An attempt timed out (never retried)
            CheckFailedError: Every attempt failed
        """
        timeout_ms = definition.timeout_ms or self.default_timeout_ms
        retries = definition.retries if definition.retries is not None else self.default_retries
        max_attempts = retries + 1

        start_time = time.monotonic()
        last_error: Optional[BaseException] = None
        last_outcome: Optional[ProbeOutcome] = None

        with log_context(probe_name=name):
            for attempt in range(1, max_attempts + 1):
                try:
                    outcome = await self.run_once(name, definition.probe, timeout_ms)
                except CheckTimeoutError as e:
                    e.attempts = attempt
                    e.duration_ms = (time.monotonic() - start_time) * 1000
                    logger.warning(
                        f"Probe {name} timed out after {timeout_ms}ms "
                        f"(attempt {attempt}/{max_attempts})"
                    )
                    raise
                except CheckFailedError as e:
                    last_error = e.cause
                    last_outcome = None
                else:
                    if outcome.status != ProbeStatus.UNHEALTHY:
                        duration_ms = (time.monotonic() - start_time) * 1000
                        logger.debug(
                            f"Probe {name}: {outcome.status.value} "
                            f"({duration_ms:.1f}ms, attempts={attempt})"
                        )
                        return ExecutionRecord(
                            name=name,
                            outcome=self._apply_definition(outcome, definition),
                            duration_ms=duration_ms,
                            attempts=attempt,
                        )
                    last_outcome = outcome
                    last_error = ProbeUnhealthyError(outcome)

                if attempt < max_attempts:
                    delay_ms = self.retry_backoff_ms * attempt
                    logger.debug(
                        f"Probe {name} attempt {attempt}/{max_attempts} failed: "
                        f"{describe_error(last_error)}; retrying in {delay_ms}ms"
                    )
                    await asyncio.sleep(delay_ms / 1000)

            duration_ms = (time.monotonic() - start_time) * 1000
            logger.warning(
                f"Probe {name} failed after {max_attempts} attempts: "
                f"{describe_error(last_error)}"
            )

        raise CheckFailedError(
            name,
            last_error,
            attempts=max_attempts,
            duration_ms=duration_ms,
            last_outcome=(
                self._apply_definition(last_outcome, definition)
                if last_outcome is not None else None
            ),
        )

    async def execute(self, name: str, definition: ProbeDefinition) -> ExecutionRecord:
        """
        Run a probe, folding probe-level errors into an unhealthy record.

        Never raises CheckTimeoutError / CheckFailedError.
        """
        try:
            return await self.run(name, definition)
        except CheckTimeoutError as e:
            outcome = ProbeOutcome.unhealthy(error=e.message)
            attempts = e.attempts
            duration_ms = e.duration_ms or 0.0
        except CheckFailedError as e:
            if e.last_outcome is not None:
                outcome = e.last_outcome
            else:
                outcome = ProbeOutcome.unhealthy(error=describe_error(e.cause))
            attempts = e.attempts
            duration_ms = e.duration_ms or 0.0

        return ExecutionRecord(
            name=name,
            outcome=self._apply_definition(outcome, definition),
            duration_ms=duration_ms,
            attempts=attempts,
        )

    # =========================================================================
    # BATCH EXECUTION
    # =========================================================================

    async def run_all(
        self,
        probes: ProbeSet,
        parallel: bool = True,
        stop_on_failure: bool = False,
        on_complete: Optional[RecordCallback] = None,
    ) -> Dict[str, ExecutionRecord]:
        """
        Execute many probes.

        Args:
            probes: name -> definition mapping (or pairs), in registration order
            parallel: Launch all at once; otherwise strictly in order
            stop_on_failure: Sequential only; skip the rest after an unhealthy result
            on_complete: Called with each record as soon as it is produced

        Returns:
            name -> record, in registration order (skipped probes absent)
        """
        items = _probe_items(probes)
        if not items:
            return {}

        if parallel:
            records = await asyncio.gather(*(
                self._execute_and_report(name, definition, on_complete)
                for name, definition in items
            ))
            return {record.name: record for record in records}

        results: Dict[str, ExecutionRecord] = {}
        for name, definition in items:
            record = await self._execute_and_report(name, definition, on_complete)
            results[name] = record
            if stop_on_failure and record.status == ProbeStatus.UNHEALTHY:
                skipped = len(items) - len(results)
                if skipped:
                    logger.info(f"Stopping sequential run after {name} failed; {skipped} probe(s) skipped")
                break

        return results

    async def run_with_concurrency(
        self,
        probes: ProbeSet,
        limit: int,
        on_complete: Optional[RecordCallback] = None,
    ) -> Dict[str, ExecutionRecord]:
        """
        Execute many probes, at most `limit` at a time.

        The next queued probe starts as soon as a running one finishes.

        Raises:
            ValueError: limit < 1
        """
        if limit < 1:
            raise ValueError(f"Concurrency limit must be >= 1, got {limit}")

        items = _probe_items(probes)
        if not items:
            return {}

        semaphore = asyncio.Semaphore(limit)

        async def run_with_semaphore(name: str, definition: ProbeDefinition) -> ExecutionRecord:
            async with semaphore:
                return await self._execute_and_report(name, definition, on_complete)

        records = await asyncio.gather(*(
            run_with_semaphore(name, definition)
            for name, definition in items
        ))
        return {record.name: record for record in records}

    async def _execute_and_report(
        self,
        name: str,
        definition: ProbeDefinition,
        on_complete: Optional[RecordCallback],
    ) -> ExecutionRecord:
        record = await self.execute(name, definition)
        if on_complete is not None:
            on_complete(record)
        return record

    def close(self) -> None:
        """Refuse further sync attempts. Abandoned threads are not waited for."""
        self._closed = True


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProbeExecutor",
    "ProbeUnhealthyError",
    "ProbeSet",
    "RecordCallback",
]
