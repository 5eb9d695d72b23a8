# ============================================================================
# KERNEL CONTEXT
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Kernel - Shared state handle
# PURPOSE: Explicit state container passed to every plugin
# CREATED: 17 OCT 2026
# ============================================================================
"""
Kernel Context

HealthContext is built once per kernel and handed to plugins through
kernel.get_context() and on_init(context). There is no module-level
state: two kernels never share a context.

Plugin service slots (runner, aggregator, thresholds, history) start as
None and are filled by the plugins' install hooks.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from core.config.options import HealthOptions
from core.contracts import ProbeStatus
from core.models.probe import ExecutionRecord
from core.models.snapshot import HealthSnapshot
from health.aggregator import round_half_up
from health.registry import ProbeRegistry
from kernel.events import EventBus

if TYPE_CHECKING:
    from plugins.aggregator import AggregatorService
    from plugins.history import HistoryService
    from plugins.runner import RunnerService
    from plugins.thresholds import ThresholdsService


# ============================================================================
# METRICS
# ============================================================================

@dataclass
class ProbeMetrics:
    """Running counters for one probe."""
    success: int = 0
    failure: int = 0
    avg_latency_ms: int = 0
    last_latency_ms: float = 0.0
    last_status: ProbeStatus = ProbeStatus.HEALTHY

    @property
    def total(self) -> int:
        return self.success + self.failure

    def record(self, record: ExecutionRecord) -> None:
        """Fold one completed execution into the counters."""
        outcome = record.outcome
        latency = outcome.latency_ms if outcome.latency_ms is not None else record.duration_ms
        previous_total = self.total

        if outcome.status == ProbeStatus.HEALTHY:
            self.success += 1
        else:
            self.failure += 1

        self.avg_latency_ms = round_half_up(
            (self.avg_latency_ms * previous_total + latency) / (previous_total + 1)
        )
        self.last_latency_ms = latency
        self.last_status = outcome.status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "failure": self.failure,
            "avg_latency_ms": self.avg_latency_ms,
            "last_latency_ms": round(self.last_latency_ms, 2),
            "last_status": self.last_status.value,
        }


@dataclass
class MetricsAccumulator:
    """Per-probe metrics plus the latest overall score and uptime."""
    score: int = 100
    uptime_seconds: float = 0.0
    checks: Dict[str, ProbeMetrics] = field(default_factory=dict)

    def record(self, record: ExecutionRecord) -> ProbeMetrics:
        metrics = self.checks.setdefault(record.name, ProbeMetrics())
        metrics.record(record)
        return metrics

    def forget(self, name: str) -> None:
        self.checks.pop(name, None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "uptime_seconds": round(self.uptime_seconds, 3),
            "checks": {name: m.to_dict() for name, m in self.checks.items()},
        }


# ============================================================================
# CONTEXT
# ============================================================================

@dataclass
class HealthContext:
    """Shared state for one kernel instance."""
    options: HealthOptions
    probes: ProbeRegistry = field(default_factory=ProbeRegistry)
    results: Dict[str, ExecutionRecord] = field(default_factory=dict)
    metrics: MetricsAccumulator = field(default_factory=MetricsAccumulator)
    events: EventBus = field(default_factory=EventBus)
    logger: Union[logging.Logger, logging.LoggerAdapter] = field(
        default_factory=lambda: logging.getLogger("kernel")
    )
    started_at: float = field(default_factory=time.monotonic)
    started_at_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: Optional[HealthSnapshot] = None

    # Plugin services
    runner: Optional["RunnerService"] = None
    aggregator: Optional["AggregatorService"] = None
    thresholds: Optional["ThresholdsService"] = None
    history: Optional["HistoryService"] = None

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the context was created."""
        return time.monotonic() - self.started_at


__all__ = [
    "ProbeMetrics",
    "MetricsAccumulator",
    "HealthContext",
]
