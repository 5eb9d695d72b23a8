# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for probe execution, thresholds and history
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Defaults

Built-in values for probe execution, status thresholds and the history
plugin. Every value has a HEALTH_* environment override, read once by
get_defaults() and cached until reset_defaults().

Environment:
    HEALTH_TIMEOUT_MS, HEALTH_RETRIES, HEALTH_INTERVAL,
    HEALTH_RETRY_BACKOFF_MS, HEALTH_MAX_WORKERS,
    HEALTH_THRESHOLD_HEALTHY, HEALTH_THRESHOLD_DEGRADED,
    HEALTH_HISTORY_MAX_ENTRIES, HEALTH_HISTORY_MAX_PER_CHECK
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from core.errors import InvalidConfigError


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidConfigError(
            f"Environment variable {name} must be an integer, got {raw!r}",
            {"variable": name, "value": raw},
        ) from e


@dataclass(frozen=True)
class ProbeDefaults:
    """
    Execution and scheduling settings inherited by probes registered
    without their own.
    """
    timeout_ms: int = 5000
    retries: int = 2
    interval: str = "30s"  # Duration expression, see core.duration

    # Linear backoff: sleep retry_backoff_ms * attempt between attempts
    retry_backoff_ms: int = 100

    # Worker threads for synchronous probes
    max_workers: int = 10

    @classmethod
    def from_env(cls) -> "ProbeDefaults":
        """Read HEALTH_* overrides."""
        return cls(
            timeout_ms=_env_int("HEALTH_TIMEOUT_MS", cls.timeout_ms),
            retries=_env_int("HEALTH_RETRIES", cls.retries),
            interval=os.getenv("HEALTH_INTERVAL", cls.interval),
            retry_backoff_ms=_env_int("HEALTH_RETRY_BACKOFF_MS", cls.retry_backoff_ms),
            max_workers=_env_int("HEALTH_MAX_WORKERS", cls.max_workers),
        )


@dataclass(frozen=True)
class ThresholdDefaults:
    """score >= healthy -> healthy; score >= degraded -> degraded."""
    healthy: int = 80
    degraded: int = 50

    @classmethod
    def from_env(cls) -> "ThresholdDefaults":
        """Read HEALTH_THRESHOLD_* overrides."""
        return cls(
            healthy=_env_int("HEALTH_THRESHOLD_HEALTHY", cls.healthy),
            degraded=_env_int("HEALTH_THRESHOLD_DEGRADED", cls.degraded),
        )


@dataclass(frozen=True)
class HistoryDefaults:
    """Bounds for the in-memory execution history."""
    max_entries: int = 100
    max_per_check: int = 50

    @classmethod
    def from_env(cls) -> "HistoryDefaults":
        """Read HEALTH_HISTORY_* overrides."""
        return cls(
            max_entries=_env_int("HEALTH_HISTORY_MAX_ENTRIES", cls.max_entries),
            max_per_check=_env_int("HEALTH_HISTORY_MAX_PER_CHECK", cls.max_per_check),
        )


# ============================================================================
# PROCESS-WIDE DEFAULTS
# ============================================================================

@dataclass
class Defaults:
    """All default groups."""
    probes: ProbeDefaults = field(default_factory=ProbeDefaults)
    thresholds: ThresholdDefaults = field(default_factory=ThresholdDefaults)
    history: HistoryDefaults = field(default_factory=HistoryDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        return cls(
            probes=ProbeDefaults.from_env(),
            thresholds=ThresholdDefaults.from_env(),
            history=HistoryDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Cached defaults, read from the environment on first use."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Drop the cache so the next get_defaults() re-reads the environment."""
    global _defaults
    _defaults = None


__all__ = [
    "ProbeDefaults",
    "ThresholdDefaults",
    "HistoryDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
