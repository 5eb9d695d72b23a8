# ============================================================================
# THRESHOLDS PLUGIN
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Plugin - Optional
# PURPOSE: Validated runtime control of the status thresholds
# CREATED: 17 OCT 2026
# ============================================================================
"""
Thresholds Plugin

Installs context.thresholds: a validated front end for the aggregator's
thresholds. Unlike Aggregator.set_thresholds(), set() keeps the current
value of any threshold it is not given.

Events:
- thresholds:changed {healthy, degraded}
- thresholds:reset   {healthy, degraded}
"""

import logging
from typing import Any, Callable, Optional

from core.errors import InvalidConfigError
from core.models.snapshot import Thresholds
from kernel.context import HealthContext
from kernel.events import KernelEvent
from kernel.plugin import KernelPlugin

logger = logging.getLogger(__name__)


def is_valid_threshold(value: Any) -> bool:
    """True for a number in [0, 100]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return 0 <= value <= 100


def validate_threshold(name: str, value: Any) -> int:
    """
    Raises:
        InvalidConfigError: value is not a number in [0, 100]
    """
    if not is_valid_threshold(value):
        raise InvalidConfigError(
            f"Invalid {name} threshold: must be a number between 0 and 100, got {value!r}",
            {"threshold": name, "value": value},
        )
    return int(value)


class ThresholdsService:
    """Threshold management bound to one kernel context."""

    def __init__(
        self,
        context: HealthContext,
        emit: Callable[..., Any],
        initial: Thresholds,
    ):
        self._context = context
        self._emit = emit
        self._initial = initial.model_copy()
        self._apply(initial.healthy, initial.degraded)

    def get(self) -> Thresholds:
        return self._context.aggregator.get_thresholds()

    def set(self, healthy: Optional[int] = None, degraded: Optional[int] = None) -> Thresholds:
        """
        Update one or both thresholds.

        Raises:
            InvalidConfigError: A value outside [0, 100]; nothing is changed
        """
        current = self.get()
        new_healthy = current.healthy if healthy is None else validate_threshold("healthy", healthy)
        new_degraded = current.degraded if degraded is None else validate_threshold("degraded", degraded)

        thresholds = self._apply(new_healthy, new_degraded)
        logger.info(f"Thresholds changed: healthy={thresholds.healthy}, degraded={thresholds.degraded}")
        self._emit(KernelEvent.THRESHOLDS_CHANGED, thresholds.model_dump())
        return thresholds

    def reset(self) -> Thresholds:
        """Restore the thresholds the plugin was installed with."""
        thresholds = self._apply(self._initial.healthy, self._initial.degraded)
        logger.info("Thresholds reset")
        self._emit(KernelEvent.THRESHOLDS_RESET, thresholds.model_dump())
        return thresholds

    def _apply(self, healthy: int, degraded: int) -> Thresholds:
        thresholds = self._context.aggregator.set_thresholds(healthy=healthy, degraded=degraded)
        self._context.options.thresholds = thresholds
        return thresholds


class ThresholdsPlugin(KernelPlugin):
    """
    Optional plugin for runtime threshold control.

    Args:
        healthy: Initial healthy threshold (default: options, else 80)
        degraded: Initial degraded threshold (default: options, else 50)
    """

    name = "thresholds"
    dependencies = ("aggregator",)

    def __init__(self, healthy: Optional[int] = None, degraded: Optional[int] = None):
        self.healthy = healthy
        self.degraded = degraded
        self.service: Optional[ThresholdsService] = None

    def install(self, kernel) -> None:
        context = kernel.get_context()
        configured = context.options.thresholds
        initial = Thresholds(
            healthy=validate_threshold(
                "healthy",
                self.healthy if self.healthy is not None else configured.healthy,
            ),
            degraded=validate_threshold(
                "degraded",
                self.degraded if self.degraded is not None else configured.degraded,
            ),
        )

        self.service = ThresholdsService(context, kernel.emit, initial)
        context.thresholds = self.service

    def on_init(self, context: HealthContext) -> None:
        current = self.service.get()
        context.logger.info(
            f"Thresholds plugin initialized (healthy: {current.healthy}, degraded: {current.degraded})"
        )


__all__ = [
    "ThresholdsService",
    "ThresholdsPlugin",
    "is_valid_threshold",
    "validate_threshold",
]
