# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Service - External interface
# PURPOSE: Facade consumed by transport and presentation collaborators
# CREATED: 17 OCT 2026
# ============================================================================
"""
Services Module

Usage:
    from services import HealthMonitor, run_checks

    monitor = HealthMonitor(interval="30s")
    monitor.register("database", ping_db, critical=True)
    await monitor.start()
    snapshot = await monitor.status()
"""

from .monitor_service import HealthMonitor, OneShotResult, run_checks

__all__ = [
    "HealthMonitor",
    "OneShotResult",
    "run_checks",
]
