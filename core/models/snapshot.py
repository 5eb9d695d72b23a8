# ============================================================================
# CLAUDE CONTEXT - SNAPSHOT MODELS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core model - Aggregated health view
# PURPOSE: Overall status snapshot, per-probe view and score thresholds
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: CheckView, HealthSnapshot, Thresholds
# DEPENDENCIES: pydantic
# ============================================================================
"""
Snapshot Models

HealthSnapshot is a derived view: the aggregator rebuilds it from the
current execution records and thresholds. Nothing mutates a snapshot
after it is produced.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import ProbeStatus


class Thresholds(BaseModel):
    """
    Score thresholds (inclusive).

    No ordering is enforced between the two values; status resolution
    always checks healthy before degraded.
    """
    healthy: int = Field(default=80, ge=0, le=100, description="score >= healthy -> healthy")
    degraded: int = Field(default=50, ge=0, le=100, description="score >= degraded -> degraded")


class CheckView(BaseModel):
    """Public view of one probe's most recent outcome."""
    model_config = ConfigDict(frozen=True)

    status: ProbeStatus
    latency_ms: float = Field(default=0.0, ge=0)
    last_check: datetime
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: Dict[str, Any] = {
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
            "last_check": self.last_check.isoformat(),
        }
        if self.error:
            result["error"] = self.error
        if self.metadata:
            result["metadata"] = self.metadata
        return result


class HealthSnapshot(BaseModel):
    """Aggregate health: status, score, uptime and per-probe views."""
    model_config = ConfigDict(frozen=True)

    status: ProbeStatus
    score: int = Field(ge=0, le=100)
    uptime_seconds: float = Field(default=0.0, ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: Dict[str, CheckView] = Field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status == ProbeStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "status": self.status.value,
            "score": self.score,
            "uptime": int(self.uptime_seconds),
            "timestamp": self.timestamp.isoformat(),
            "checks": {
                name: view.to_dict()
                for name, view in self.checks.items()
            },
        }


__all__ = [
    "Thresholds",
    "CheckView",
    "HealthSnapshot",
]
