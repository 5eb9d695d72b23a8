# ============================================================================
# HEALTH OPTIONS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Kernel configuration model
# PURPOSE: Validated options handed to create_health_kernel()
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Options

One validated object carrying every knob the kernel and its core plugins
read: execution defaults, the global scheduling interval, thresholds and
the initial probe set.

Probes may be given as ProbeDefinition instances, plain dicts, or bare
callables (which get default settings).
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from core.config.defaults import Defaults, get_defaults
from core.duration import duration_parser, parse_duration
from core.models.probe import ProbeDefinition
from core.models.snapshot import Thresholds


class HealthOptions(BaseModel):
    """Kernel options."""

    timeout_ms: int = Field(default=5000, gt=0, description="Default per-attempt deadline")
    retries: int = Field(default=2, ge=0, description="Default retry count")
    interval: Union[int, str] = Field(default="30s", description="Global scheduling interval")
    thresholds: Thresholds = Field(default_factory=Thresholds)
    retry_backoff_ms: int = Field(default=100, ge=0, description="Linear backoff step")
    max_workers: int = Field(default=10, ge=1, description="Threads for sync probes")
    probes: Dict[str, ProbeDefinition] = Field(default_factory=dict)

    @field_validator("interval", mode="before")
    @classmethod
    def _normalize_interval(cls, value: Any) -> str:
        return duration_parser.parse(value).expression

    @field_validator("probes", mode="before")
    @classmethod
    def _coerce_probes(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        coerced = {}
        for name, probe in value.items():
            if callable(probe) and not isinstance(probe, ProbeDefinition):
                probe = ProbeDefinition(probe=probe)
            coerced[name] = probe
        return coerced

    @property
    def interval_ms(self) -> int:
        """Global scheduling interval in milliseconds."""
        return parse_duration(self.interval)

    @classmethod
    def from_defaults(cls, defaults: Optional[Defaults] = None, **overrides) -> "HealthOptions":
        """Build options from the (environment-aware) global defaults."""
        defaults = defaults or get_defaults()
        data: Dict[str, Any] = {
            "timeout_ms": defaults.probes.timeout_ms,
            "retries": defaults.probes.retries,
            "interval": defaults.probes.interval,
            "retry_backoff_ms": defaults.probes.retry_backoff_ms,
            "max_workers": defaults.probes.max_workers,
            "thresholds": {
                "healthy": defaults.thresholds.healthy,
                "degraded": defaults.thresholds.degraded,
            },
        }
        data.update(overrides)
        return cls.model_validate(data)


__all__ = ["HealthOptions"]
