# ============================================================================
# PLUGINS MODULE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Plugins - Module exports
# PURPOSE: Core (runner, aggregator) and optional (thresholds, history) plugins
# CREATED: 17 OCT 2026
# ============================================================================
"""
Plugins Module

Core plugins:
- RunnerPlugin: probe registration, execution, interval scheduling
- AggregatorPlugin: overall status and score (requires runner)

Optional plugins:
- ThresholdsPlugin: validated threshold control (requires aggregator)
- HistoryPlugin: bounded execution history and trends (requires runner)
"""

from plugins.runner import RunnerPlugin, RunnerService
from plugins.aggregator import AggregatorPlugin, AggregatorService
from plugins.thresholds import ThresholdsPlugin, ThresholdsService
from plugins.history import HistoryPlugin, HistoryService, HistoryEntry, TrendReport


def core_plugins() -> list:
    """Fresh instances of the core plugins, in registration order."""
    return [RunnerPlugin(), AggregatorPlugin()]


__all__ = [
    "RunnerPlugin",
    "RunnerService",
    "AggregatorPlugin",
    "AggregatorService",
    "ThresholdsPlugin",
    "ThresholdsService",
    "HistoryPlugin",
    "HistoryService",
    "HistoryEntry",
    "TrendReport",
    "core_plugins",
]
