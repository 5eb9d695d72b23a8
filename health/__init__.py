# ============================================================================
# HEALTH ENGINE MODULE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Probe execution, aggregation and scheduling
# PURPOSE: Kernel-independent building blocks used by the core plugins
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Engine Module

Architecture:
- ProbeRegistry: ordered probe definitions
- ProbeExecutor: timeouts, retries, parallel/bounded/sequential batches
- Aggregator: weighted score, critical override, thresholds
- IntervalScheduler: one repeating task per probe

Usage:
    from health import ProbeExecutor, Aggregator

    executor = ProbeExecutor(default_timeout_ms=2000)
    records = await executor.run_all(registry)
    snapshot = Aggregator().aggregate(records)
"""

from health.registry import ProbeRegistry, build_definition
from health.executor import ProbeExecutor, ProbeUnhealthyError
from health.aggregator import Aggregator, round_half_up
from health.scheduler import IntervalScheduler

__all__ = [
    # Registry
    "ProbeRegistry",
    "build_definition",
    # Executor
    "ProbeExecutor",
    "ProbeUnhealthyError",
    # Aggregator
    "Aggregator",
    "round_half_up",
    # Scheduler
    "IntervalScheduler",
]
