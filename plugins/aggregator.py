# ============================================================================
# AGGREGATOR PLUGIN
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Plugin - Core
# PURPOSE: Keep context.status current as probe results arrive
# CREATED: 17 OCT 2026
# ============================================================================
"""
Aggregator Plugin

Installs into the context:
- context.aggregator: AggregatorService

Recomputes context.status on every probe:completed and
probe:unregistered, and emits status:changed {previous, current, score}
when the overall status differs from the previous snapshot.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from core.contracts import ProbeStatus
from core.models.snapshot import HealthSnapshot, Thresholds
from health.aggregator import Aggregator, ResultEntry
from kernel.context import HealthContext
from kernel.events import KernelEvent
from kernel.plugin import KernelPlugin

logger = logging.getLogger(__name__)


class AggregatorService:
    """Aggregation bound to one kernel context."""

    def __init__(
        self,
        context: HealthContext,
        aggregator: Aggregator,
        emit: Callable[..., Any],
    ):
        self._context = context
        self._emit = emit
        self.aggregator = aggregator

    def aggregate(self, results: Optional[Mapping[str, ResultEntry]] = None) -> HealthSnapshot:
        """Snapshot of the given results (default: latest result per probe)."""
        if results is None:
            results = self._context.results
        return self.aggregator.aggregate(results, self._context.uptime_seconds)

    def refresh(self) -> HealthSnapshot:
        """Recompute context.status from the latest results."""
        snapshot = self.aggregate()
        previous = self._context.status

        self._context.status = snapshot
        self._context.metrics.score = snapshot.score
        self._context.metrics.uptime_seconds = snapshot.uptime_seconds

        if previous is not None and previous.status != snapshot.status:
            logger.info(
                f"Health status changed: {previous.status.value} -> "
                f"{snapshot.status.value} (score={snapshot.score})"
            )
            self._emit(KernelEvent.STATUS_CHANGED, {
                "previous": previous.status,
                "current": snapshot.status,
                "score": snapshot.score,
            })
        return snapshot

    def get_thresholds(self) -> Thresholds:
        return self.aggregator.get_thresholds()

    def set_thresholds(self, healthy: Optional[int] = None, degraded: Optional[int] = None) -> Thresholds:
        """Replace thresholds (omitted values reset to defaults) and refresh."""
        thresholds = self.aggregator.set_thresholds(healthy=healthy, degraded=degraded)
        self.refresh()
        return thresholds

    def predict_status(self, score: float) -> ProbeStatus:
        return self.aggregator.predict_status(score)


class AggregatorPlugin(KernelPlugin):
    """
    Core plugin computing the overall status.

    Args:
        thresholds: Override options.thresholds for this aggregator
    """

    name = "aggregator"
    dependencies = ("runner",)

    def __init__(self, thresholds: Optional[Thresholds] = None):
        self.thresholds = thresholds
        self.service: Optional[AggregatorService] = None

    def install(self, kernel) -> None:
        context = kernel.get_context()
        aggregator = Aggregator(self.thresholds or context.options.thresholds)

        self.service = AggregatorService(context, aggregator, kernel.emit)
        context.aggregator = self.service
        context.status = self.service.aggregate()

        kernel.on(KernelEvent.PROBE_COMPLETED, self._on_results_changed)
        kernel.on(KernelEvent.PROBE_UNREGISTERED, self._on_results_changed)
        kernel.emit(KernelEvent.AGGREGATOR_INSTALLED, {"aggregator": aggregator})

    def on_init(self, context: HealthContext) -> None:
        thresholds = self.service.get_thresholds()
        context.logger.info(
            f"Aggregator plugin initialized "
            f"(healthy>={thresholds.healthy}, degraded>={thresholds.degraded})"
        )

    def _on_results_changed(self, payload: Any) -> None:
        self.service.refresh()


__all__ = [
    "AggregatorService",
    "AggregatorPlugin",
]
