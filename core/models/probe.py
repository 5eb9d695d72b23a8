# ============================================================================
# CLAUDE CONTEXT - PROBE MODELS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core model - Probe definition, outcome and execution record
# PURPOSE: Typed shapes flowing through the execution engine
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: ProbeDefinition, ProbeOutcome, ExecutionRecord, ProbeCallable
# DEPENDENCIES: pydantic
# ============================================================================
"""
Probe Models

Key concept:
- ProbeDefinition = TEMPLATE (what to call, how patiently, how much it counts)
- ProbeOutcome    = VERDICT of one attempt
- ExecutionRecord = RESULT of one triggered execution (all attempts)

A probe callable may be sync or async and may return None, a bool, a dict
or a ProbeOutcome. ProbeExecutor.normalize_outcome() is the only place
those shapes are told apart.
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.contracts import ProbeStatus
from core.duration import parse_duration
from core.errors import describe_error


ProbeResult = Union[None, bool, Dict[str, Any], "ProbeOutcome"]
ProbeCallable = Callable[[], Union[ProbeResult, Awaitable[ProbeResult]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProbeOutcome(BaseModel):
    """
    Verdict produced by one probe attempt. Immutable.

    weight/critical are per-call overrides of the probe's static settings.
    """
    model_config = ConfigDict(frozen=True)

    status: ProbeStatus = Field(description="healthy, degraded or unhealthy")
    latency_ms: Optional[float] = Field(default=None, ge=0, description="Latency reported by the probe")
    error: Optional[str] = Field(default=None, description="Error message, if any")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Free-form probe data")
    weight: Optional[float] = Field(default=None, ge=0, le=100, description="Per-call weight override")
    critical: Optional[bool] = Field(default=None, description="Per-call critical override")

    @classmethod
    def healthy(cls, **fields) -> "ProbeOutcome":
        """Create healthy outcome."""
        return cls(status=ProbeStatus.HEALTHY, **fields)

    @classmethod
    def degraded(cls, error: Optional[str] = None, **fields) -> "ProbeOutcome":
        """Create degraded outcome."""
        return cls(status=ProbeStatus.DEGRADED, error=error, **fields)

    @classmethod
    def unhealthy(cls, error: Optional[str] = None, **fields) -> "ProbeOutcome":
        """Create unhealthy outcome."""
        return cls(status=ProbeStatus.UNHEALTHY, error=error, **fields)

    @classmethod
    def from_exception(cls, error: BaseException, **fields) -> "ProbeOutcome":
        """Create unhealthy outcome from an exception."""
        return cls(status=ProbeStatus.UNHEALTHY, error=describe_error(error), **fields)


class ProbeDefinition(BaseModel):
    """
    Registered probe: the callable plus its execution settings.

    Identity is the registration name, held by the registry. Re-registering
    a name replaces the definition wholesale.

    timeout_ms / retries left as None fall back to the executor defaults;
    weight left as None is distributed evenly at aggregation time;
    interval_ms left as None uses the global scheduling interval.
    """
    model_config = ConfigDict(frozen=True)

    probe: Callable[..., Any] = Field(description="Sync or async callable returning an outcome shape")
    timeout_ms: Optional[int] = Field(default=None, gt=0, description="Per-attempt deadline")
    retries: Optional[int] = Field(default=None, ge=0, description="Extra attempts after a failure")
    critical: bool = Field(default=False, description="Unhealthy forces overall unhealthy")
    weight: Optional[float] = Field(default=None, ge=0, le=100, description="Score weight (0-100)")
    interval_ms: Optional[int] = Field(default=None, ge=0, description="Scheduling interval override")

    @field_validator("interval_ms", mode="before")
    @classmethod
    def _parse_interval(cls, value: Any) -> Any:
        """Accept duration expressions ("30s") as well as milliseconds."""
        if value is None or isinstance(value, bool):
            return value
        return parse_duration(value)


class ExecutionRecord(BaseModel):
    """Result of one triggered execution, including every retry."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Probe registration name")
    outcome: ProbeOutcome
    duration_ms: float = Field(ge=0, description="Wall clock of the whole attempt sequence")
    attempts: int = Field(default=1, ge=1, description="Attempts actually made")
    completed_at: datetime = Field(default_factory=_utcnow)

    @property
    def status(self) -> ProbeStatus:
        return self.outcome.status


__all__ = [
    "ProbeResult",
    "ProbeCallable",
    "ProbeOutcome",
    "ProbeDefinition",
    "ExecutionRecord",
]
