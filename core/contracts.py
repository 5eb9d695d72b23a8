# ============================================================================
# CLAUDE CONTEXT - BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Foundation - Core enums
# PURPOSE: Define status and trend enums shared by every component
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: ProbeStatus, TrendDirection
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the health kernel.

Status values cross every boundary (probe outcome, snapshot, events),
so they are str-valued enums that serialize to their plain value.
"""

from enum import Enum


# ============================================================================
# STATUS ENUMS
# ============================================================================

class ProbeStatus(str, Enum):
    """
    Health verdict for a single probe or for the whole service.

    Each status maps to the points it contributes to the weighted score.
    """
    HEALTHY = "healthy"          # Dependency fully operational
    DEGRADED = "degraded"        # Operational with warnings
    UNHEALTHY = "unhealthy"      # Dependency down

    @property
    def points(self) -> int:
        """Score contribution of this status (healthy=100, degraded=50, unhealthy=0)."""
        return _POINTS[self]


_POINTS = {
    ProbeStatus.HEALTHY: 100,
    ProbeStatus.DEGRADED: 50,
    ProbeStatus.UNHEALTHY: 0,
}


class TrendDirection(str, Enum):
    """Direction of a probe's recent success rate (history plugin)."""
    IMPROVING = "improving"
    STABLE = "stable"
    DEGRADING = "degrading"


__all__ = [
    "ProbeStatus",
    "TrendDirection",
]
