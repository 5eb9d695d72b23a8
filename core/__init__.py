# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors, models and duration helpers
# LAST_REVIEWED: 17 OCT 2026
# ============================================================================

from core.contracts import ProbeStatus, TrendDirection
from core.errors import (
    ErrorCode,
    HealthError,
    InvalidIntervalError,
    InvalidConfigError,
    CheckTimeoutError,
    CheckFailedError,
    KernelError,
    PluginError,
    MissingDependencyError,
    PluginAlreadyRegisteredError,
)
from core.models import (
    ProbeDefinition,
    ProbeOutcome,
    ExecutionRecord,
    CheckView,
    HealthSnapshot,
    Thresholds,
)
from core.duration import parse_duration, format_duration, duration_parser

__all__ = [
    # Enums
    "ProbeStatus",
    "TrendDirection",
    # Errors
    "ErrorCode",
    "HealthError",
    "InvalidIntervalError",
    "InvalidConfigError",
    "CheckTimeoutError",
    "CheckFailedError",
    "KernelError",
    "PluginError",
    "MissingDependencyError",
    "PluginAlreadyRegisteredError",
    # Models
    "ProbeDefinition",
    "ProbeOutcome",
    "ExecutionRecord",
    "CheckView",
    "HealthSnapshot",
    "Thresholds",
    # Duration
    "parse_duration",
    "format_duration",
    "duration_parser",
]
