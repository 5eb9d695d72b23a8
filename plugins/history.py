# ============================================================================
# HISTORY PLUGIN
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Plugin - Optional
# PURPOSE: Bounded in-memory history of completed executions and trends
# CREATED: 17 OCT 2026
# ============================================================================
"""
History Plugin

Keeps the most recent completed executions in memory (never persisted):
- overall: last max_entries executions across all probes
- per probe: last max_per_check executions

Trend for a probe compares the success rate of the newer half of its
history against the older half; a difference beyond 10 percentage points
is improving/degrading, anything else is stable.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence

from core.config.defaults import get_defaults
from core.contracts import ProbeStatus, TrendDirection
from core.models.probe import ProbeOutcome
from health.aggregator import round_half_up
from kernel.context import HealthContext
from kernel.events import KernelEvent
from kernel.plugin import KernelPlugin

logger = logging.getLogger(__name__)

TREND_BAND = 0.1


@dataclass(frozen=True)
class HistoryEntry:
    """One completed execution."""
    name: str
    outcome: ProbeOutcome
    duration_ms: float
    attempts: int = 1
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_success(self) -> bool:
        return self.outcome.status == ProbeStatus.HEALTHY


@dataclass(frozen=True)
class TrendReport:
    """Latency and success summary for one probe."""
    avg_latency_ms: int
    success_rate: int
    direction: TrendDirection
    samples: int = 0


def _success_rate(entries: Sequence[HistoryEntry]) -> float:
    return sum(1 for e in entries if e.is_success) / len(entries)


class HistoryService:
    """History storage bound to one kernel context."""

    def __init__(self, emit: Callable[..., Any], max_entries: int, max_per_check: int):
        self._emit = emit
        self.max_entries = max_entries
        self.max_per_check = max_per_check
        self._overall: Deque[HistoryEntry] = deque(maxlen=max_entries)
        self._per_check: Dict[str, Deque[HistoryEntry]] = {}

    def record(self, entry: HistoryEntry) -> None:
        self._overall.append(entry)
        per_check = self._per_check.get(entry.name)
        if per_check is None:
            per_check = self._per_check[entry.name] = deque(maxlen=self.max_per_check)
        per_check.append(entry)

    def forget(self, name: str) -> None:
        """Drop per-probe entries for a removed probe; overall history keeps them."""
        self._per_check.pop(name, None)

    def get_check_history(self, name: str) -> List[HistoryEntry]:
        """Entries for one probe, oldest first."""
        return list(self._per_check.get(name, ()))

    def get_overall_history(self) -> List[HistoryEntry]:
        """Entries across all probes, oldest first."""
        return list(self._overall)

    def clear_history(self) -> None:
        self._overall.clear()
        self._per_check.clear()
        self._emit(KernelEvent.HISTORY_CLEARED, {})

    def clear_check_history(self, name: str) -> None:
        self._per_check.pop(name, None)
        self._emit(KernelEvent.HISTORY_CHECK_CLEARED, {"name": name})

    def get_trends(self, name: str) -> TrendReport:
        """Average latency, success rate and trend direction for a probe."""
        entries = self.get_check_history(name)
        if not entries:
            return TrendReport(avg_latency_ms=0, success_rate=100, direction=TrendDirection.STABLE)

        avg_latency = round_half_up(sum(e.duration_ms for e in entries) / len(entries))
        success_rate = round_half_up(_success_rate(entries) * 100)

        direction = TrendDirection.STABLE
        if len(entries) >= 2:
            mid = len(entries) // 2
            older_rate = _success_rate(entries[:mid])
            newer_rate = _success_rate(entries[mid:])
            if newer_rate > older_rate + TREND_BAND:
                direction = TrendDirection.IMPROVING
            elif newer_rate < older_rate - TREND_BAND:
                direction = TrendDirection.DEGRADING

        return TrendReport(
            avg_latency_ms=avg_latency,
            success_rate=success_rate,
            direction=direction,
            samples=len(entries),
        )


class HistoryPlugin(KernelPlugin):
    """
    Optional plugin recording execution history.

    Args:
        max_entries: Overall bound (default from HEALTH_HISTORY_MAX_ENTRIES)
        max_per_check: Per-probe bound (default from HEALTH_HISTORY_MAX_PER_CHECK)
    """

    name = "history"
    dependencies = ("runner",)

    def __init__(self, max_entries: Optional[int] = None, max_per_check: Optional[int] = None):
        defaults = get_defaults().history
        self.max_entries = max_entries or defaults.max_entries
        self.max_per_check = max_per_check or defaults.max_per_check
        self.service: Optional[HistoryService] = None

    def install(self, kernel) -> None:
        context = kernel.get_context()
        self.service = HistoryService(kernel.emit, self.max_entries, self.max_per_check)
        context.history = self.service
        kernel.on(KernelEvent.PROBE_COMPLETED, self._on_probe_completed)
        kernel.on(KernelEvent.PROBE_UNREGISTERED, self._on_probe_unregistered)

    def on_init(self, context: HealthContext) -> None:
        context.logger.info(
            f"History plugin initialized "
            f"(max_entries={self.max_entries}, max_per_check={self.max_per_check})"
        )

    def _on_probe_completed(self, payload: Dict[str, Any]) -> None:
        self.service.record(HistoryEntry(
            name=payload["name"],
            outcome=payload["outcome"],
            duration_ms=payload["duration_ms"],
            attempts=payload.get("attempts", 1),
        ))

    def _on_probe_unregistered(self, payload: Dict[str, Any]) -> None:
        self.service.forget(payload["name"])


__all__ = [
    "HistoryEntry",
    "TrendReport",
    "HistoryService",
    "HistoryPlugin",
]
