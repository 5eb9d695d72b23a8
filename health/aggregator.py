# ============================================================================
# HEALTH AGGREGATOR
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Weighted scoring
# PURPOSE: Reduce per-probe outcomes into one status and a 0-100 score
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Aggregator

Scoring:
- weight = outcome weight, else floor(100 / number_of_probes)
- points: healthy=100, degraded=50, unhealthy=0
- weighted += points * weight / 100, total += weight
- score = round_half_up(weighted / total * 100), or 100 when total == 0

Status:
1. Any critical probe that is unhealthy -> unhealthy (ignores the score)
2. score >= healthy threshold -> healthy
3. score >= degraded threshold -> degraded
4. otherwise unhealthy

Weights are taken as given; inconsistent totals are not renormalized.
An empty input is healthy with score 100.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Mapping, Optional, Union

from core.contracts import ProbeStatus
from core.errors import InvalidConfigError
from core.models.probe import ExecutionRecord, ProbeOutcome
from core.models.snapshot import CheckView, HealthSnapshot, Thresholds

logger = logging.getLogger(__name__)


ResultEntry = Union[ExecutionRecord, ProbeOutcome]

DEFAULT_HEALTHY_THRESHOLD = 80
DEFAULT_DEGRADED_THRESHOLD = 50


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round() is banker's)."""
    return int(math.floor(value + 0.5))


def _validate_threshold(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
        raise InvalidConfigError(
            f"{name.capitalize()} threshold must be between 0 and 100, got {value!r}",
            {"threshold": name, "value": value},
        )
    return int(value)


class Aggregator:
    """Computes HealthSnapshots from per-probe results."""

    def __init__(self, thresholds: Optional[Thresholds] = None):
        self._thresholds = thresholds.model_copy() if thresholds else Thresholds()

    # =========================================================================
    # THRESHOLDS
    # =========================================================================

    def get_thresholds(self) -> Thresholds:
        """Current thresholds (a copy)."""
        return self._thresholds.model_copy()

    def set_thresholds(
        self,
        healthy: Optional[int] = None,
        degraded: Optional[int] = None,
    ) -> Thresholds:
        """
        Replace both thresholds.

        Each omitted value resets to its default (80 / 50). No ordering is
        enforced between the two.

        Raises:
            InvalidConfigError: A value outside [0, 100]
        """
        healthy = DEFAULT_HEALTHY_THRESHOLD if healthy is None else _validate_threshold("healthy", healthy)
        degraded = DEFAULT_DEGRADED_THRESHOLD if degraded is None else _validate_threshold("degraded", degraded)

        self._thresholds = Thresholds(healthy=healthy, degraded=degraded)
        logger.debug(f"Thresholds set: healthy={healthy}, degraded={degraded}")
        return self.get_thresholds()

    def predict_status(self, score: float) -> ProbeStatus:
        """Status a score would get, assuming no critical failure."""
        if score >= self._thresholds.healthy:
            return ProbeStatus.HEALTHY
        if score >= self._thresholds.degraded:
            return ProbeStatus.DEGRADED
        return ProbeStatus.UNHEALTHY

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    def calculate_score(self, results: Mapping[str, ResultEntry]) -> int:
        """Weighted 0-100 score; 100 for no results."""
        if not results:
            return 100

        default_weight = 100 // len(results)
        weighted_score = 0.0
        total_weight = 0.0

        for entry in results.values():
            outcome = _outcome_of(entry)
            weight = outcome.weight if outcome.weight is not None else default_weight
            weighted_score += outcome.status.points * weight / 100
            total_weight += weight

        if total_weight <= 0:
            return 100
        return round_half_up(weighted_score / total_weight * 100)

    def has_critical_failure(self, results: Mapping[str, ResultEntry]) -> bool:
        """True if any critical probe is unhealthy."""
        return any(
            _outcome_of(entry).critical and _outcome_of(entry).status == ProbeStatus.UNHEALTHY
            for entry in results.values()
        )

    def aggregate(
        self,
        results: Mapping[str, ResultEntry],
        uptime_seconds: float = 0.0,
    ) -> HealthSnapshot:
        """
        Build a snapshot from the latest result per probe.

        Args:
            results: name -> ExecutionRecord (or bare ProbeOutcome)
            uptime_seconds: Reported uptime

        Returns:
            HealthSnapshot
        """
        now = datetime.now(timezone.utc)
        uptime_seconds = max(0.0, uptime_seconds)

        if not results:
            return HealthSnapshot(
                status=ProbeStatus.HEALTHY,
                score=100,
                uptime_seconds=uptime_seconds,
                timestamp=now,
                checks={},
            )

        score = self.calculate_score(results)
        if self.has_critical_failure(results):
            status = ProbeStatus.UNHEALTHY
        else:
            status = self.predict_status(score)

        checks = {
            name: _check_view(entry, now)
            for name, entry in results.items()
        }

        return HealthSnapshot(
            status=status,
            score=score,
            uptime_seconds=uptime_seconds,
            timestamp=now,
            checks=checks,
        )


def _outcome_of(entry: ResultEntry) -> ProbeOutcome:
    if isinstance(entry, ExecutionRecord):
        return entry.outcome
    return entry


def _check_view(entry: ResultEntry, now: datetime) -> CheckView:
    outcome = _outcome_of(entry)
    if isinstance(entry, ExecutionRecord):
        latency = outcome.latency_ms if outcome.latency_ms is not None else entry.duration_ms
        last_check = entry.completed_at
    else:
        latency = outcome.latency_ms or 0.0
        last_check = now

    return CheckView(
        status=outcome.status,
        latency_ms=latency,
        last_check=last_check,
        error=outcome.error,
        metadata=outcome.metadata,
    )


__all__ = [
    "Aggregator",
    "ResultEntry",
    "round_half_up",
    "DEFAULT_HEALTHY_THRESHOLD",
    "DEFAULT_DEGRADED_THRESHOLD",
]
