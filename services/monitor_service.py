# ============================================================================
# HEALTH MONITOR SERVICE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Service - External interface
# PURPOSE: Facade consumed by HTTP/CLI/metrics collaborators
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Monitor Service

HealthMonitor wires a kernel with the core plugins and exposes the small
interface outside collaborators use: register/unregister/list probes,
live status(), thresholds and kernel access.

run_checks() is the kernel-free path: run a set of probes once and
aggregate them.

Usage:
    async with HealthMonitor(interval="15s") as monitor:
        monitor.register("database", ping_db, critical=True)
        snapshot = await monitor.status()
        print(snapshot.to_dict())

    result = await run_checks({"cache": ping_cache}, timeout_ms=1000)
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from core.config.options import HealthOptions
from core.contracts import ProbeStatus
from core.models.probe import ProbeDefinition
from core.models.snapshot import CheckView, HealthSnapshot, Thresholds
from health.aggregator import Aggregator
from health.executor import ProbeExecutor
from health.registry import build_definition
from kernel.context import HealthContext
from kernel.events import EventHandler, EventName
from kernel.kernel import Kernel, create_health_kernel
from kernel.plugin import KernelPlugin
from plugins import core_plugins

logger = logging.getLogger(__name__)


class HealthMonitor:
    """
    Kernel with the core plugins installed.

    Args:
        options: HealthOptions, dict of option values, or None for defaults
        plugins: Plugins to install (default: runner + aggregator)
        extra_plugins: Plugins installed after `plugins` (e.g. history)
        **overrides: Option values (timeout_ms, interval, probes, ...)
    """

    def __init__(
        self,
        options: Union[HealthOptions, Dict[str, Any], None] = None,
        plugins: Optional[Iterable[KernelPlugin]] = None,
        extra_plugins: Iterable[KernelPlugin] = (),
        **overrides,
    ):
        self._kernel = create_health_kernel(options, **overrides)
        for plugin in (core_plugins() if plugins is None else plugins):
            self._kernel.use(plugin)
        for plugin in extra_plugins:
            self._kernel.use(plugin)

    # =========================================================================
    # KERNEL ACCESS
    # =========================================================================

    @property
    def kernel(self) -> Kernel:
        return self._kernel

    @property
    def context(self) -> HealthContext:
        return self._kernel.get_context()

    @property
    def uptime_seconds(self) -> float:
        return self.context.uptime_seconds

    def get_context(self) -> HealthContext:
        return self._kernel.get_context()

    def use(self, plugin: KernelPlugin) -> "HealthMonitor":
        self._kernel.use(plugin)
        return self

    async def init(self) -> None:
        await self._kernel.init()

    async def destroy(self) -> None:
        await self._kernel.destroy()

    def emit(self, event: EventName, payload: Any = None) -> int:
        return self._kernel.emit(event, payload)

    def on(self, event: EventName, handler: EventHandler) -> None:
        self._kernel.on(event, handler)

    def once(self, event: EventName, handler: EventHandler) -> None:
        self._kernel.once(event, handler)

    def off(self, event: EventName, handler: EventHandler) -> bool:
        return self._kernel.off(event, handler)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> "HealthMonitor":
        """Initialize the kernel; scheduled probing starts here."""
        await self._kernel.init()
        return self

    async def close(self) -> None:
        """Destroy the kernel, cancelling every scheduled probe."""
        await self._kernel.destroy()

    async def __aenter__(self) -> "HealthMonitor":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # PROBES
    # =========================================================================

    def register(self, name: str, probe: Any, **settings) -> ProbeDefinition:
        """Register or replace a probe (callable, dict or ProbeDefinition)."""
        return self.context.runner.register(name, probe, **settings)

    def unregister(self, name: str) -> bool:
        return self.context.runner.unregister(name)

    def list(self) -> List[str]:
        return self.context.runner.list()

    async def status(self) -> HealthSnapshot:
        """Run every probe now, then aggregate. Never served from cache."""
        await self.context.runner.run_all(parallel=True)
        return self.context.aggregator.refresh()

    # =========================================================================
    # THRESHOLDS
    # =========================================================================

    def get_thresholds(self) -> Thresholds:
        return self.context.aggregator.get_thresholds()

    def set_thresholds(self, healthy: Optional[int] = None, degraded: Optional[int] = None) -> Thresholds:
        """Replace thresholds; omitted values reset to 80 / 50."""
        return self.context.aggregator.set_thresholds(healthy=healthy, degraded=degraded)


# ============================================================================
# ONE-SHOT CHECKS
# ============================================================================

class OneShotResult(BaseModel):
    """Result of run_checks()."""
    healthy: bool
    score: int = Field(ge=0, le=100)
    status: ProbeStatus
    checks: Dict[str, CheckView] = Field(default_factory=dict)
    duration_ms: float = Field(ge=0, description="Wall clock of the whole run")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthy": self.healthy,
            "score": self.score,
            "status": self.status.value,
            "checks": {name: view.to_dict() for name, view in self.checks.items()},
            "duration_ms": round(self.duration_ms, 2),
        }


async def run_checks(
    probes: Mapping[str, Any],
    timeout_ms: int = 5000,
    parallel: bool = True,
    retries: int = 2,
) -> OneShotResult:
    """
    Run probes once without a kernel and aggregate the results.

    Args:
        probes: name -> callable, dict or ProbeDefinition
        timeout_ms: Deadline for probes without their own
        parallel: Run concurrently; otherwise in the given order
        retries: Retry count for probes without their own
    """
    start_time = time.monotonic()
    definitions = {name: build_definition(probe) for name, probe in probes.items()}

    executor = ProbeExecutor(default_timeout_ms=timeout_ms, default_retries=retries)
    try:
        records = await executor.run_all(definitions, parallel=parallel)
    finally:
        executor.close()

    snapshot = Aggregator().aggregate(records)
    duration_ms = (time.monotonic() - start_time) * 1000
    logger.debug(
        f"One-shot check of {len(definitions)} probe(s): "
        f"{snapshot.status.value} (score={snapshot.score}, {duration_ms:.1f}ms)"
    )

    return OneShotResult(
        healthy=snapshot.status == ProbeStatus.HEALTHY,
        score=snapshot.score,
        status=snapshot.status,
        checks=snapshot.checks,
        duration_ms=duration_ms,
    )


__all__ = [
    "HealthMonitor",
    "OneShotResult",
    "run_checks",
]
