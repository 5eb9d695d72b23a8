# ============================================================================
# CLAUDE CONTEXT - MODELS MODULE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 17 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the health kernel.
"""

from core.models.probe import (
    ProbeCallable,
    ProbeDefinition,
    ProbeOutcome,
    ProbeResult,
    ExecutionRecord,
)
from core.models.snapshot import CheckView, HealthSnapshot, Thresholds

__all__ = [
    # Probe
    "ProbeCallable",
    "ProbeDefinition",
    "ProbeOutcome",
    "ProbeResult",
    "ExecutionRecord",
    # Snapshot
    "CheckView",
    "HealthSnapshot",
    "Thresholds",
]
