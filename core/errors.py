# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Typed errors for parsing, probe execution and kernel lifecycle
# CREATED: 17 OCT 2026
# ============================================================================
"""
Error Taxonomy

All errors raised by the health kernel derive from HealthError and carry
a stable machine-readable code plus a details dict.

Propagation:
- InvalidIntervalError: raised locally, never silently defaulted
- CheckTimeoutError / CheckFailedError: raised by ProbeExecutor.run(),
  converted to unhealthy ExecutionRecords by batch/scheduled execution
- PluginAlreadyRegisteredError / MissingDependencyError / KernelError:
  raised synchronously from Kernel.use()
- PluginError: wraps a failing on_init (fail-fast) or on_destroy (logged)
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from core.models.probe import ProbeOutcome


class ErrorCode(str, Enum):
    """Stable error codes."""
    CHECK_TIMEOUT = "CHECK_TIMEOUT"
    CHECK_FAILED = "CHECK_FAILED"
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_INTERVAL = "INVALID_INTERVAL"
    PLUGIN_ERROR = "PLUGIN_ERROR"
    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    PLUGIN_ALREADY_REGISTERED = "PLUGIN_ALREADY_REGISTERED"
    KERNEL_ERROR = "KERNEL_ERROR"


def describe_error(error: BaseException) -> str:
    """Message for an arbitrary exception; falls back to its type name."""
    message = str(error)
    if message:
        return message
    return type(error).__name__ or "Unknown error"


class HealthError(Exception):
    """Base exception for health kernel errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.details = details or {}
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses and logs."""
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code.value,
            "details": self.details,
        }


# ============================================================================
# PARSING / CONFIGURATION
# ============================================================================

class InvalidIntervalError(HealthError):
    """Raised for a malformed duration expression."""

    def __init__(self, interval: Any):
        self.interval = str(interval)
        super().__init__(
            f"Invalid interval format: '{interval}'. "
            f"Valid formats: '500ms', '10s', '5m', '1h', '1d' or number in ms",
            ErrorCode.INVALID_INTERVAL,
            {"interval": self.interval},
        )


class InvalidConfigError(HealthError):
    """Raised for invalid configuration values (thresholds, options files)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_CONFIG, details)


# ============================================================================
# PROBE EXECUTION
# ============================================================================

class CheckTimeoutError(HealthError):
    """Raised when a probe attempt exceeds its deadline. Never retried."""

    def __init__(
        self,
        check_name: str,
        timeout_ms: int,
        attempts: int = 1,
        duration_ms: Optional[float] = None,
    ):
        self.check_name = check_name
        self.timeout_ms = timeout_ms
        self.attempts = attempts
        self.duration_ms = duration_ms
        super().__init__(
            f"Check '{check_name}' timed out after {timeout_ms}ms",
            ErrorCode.CHECK_TIMEOUT,
            {"check_name": check_name, "timeout_ms": timeout_ms},
        )


class CheckFailedError(HealthError):
    """Raised when a probe raised or reported unhealthy on every attempt."""

    def __init__(
        self,
        check_name: str,
        cause: BaseException,
        attempts: int = 1,
        duration_ms: Optional[float] = None,
        last_outcome: Optional["ProbeOutcome"] = None,
    ):
        self.check_name = check_name
        self.cause = cause
        self.attempts = attempts
        self.duration_ms = duration_ms
        self.last_outcome = last_outcome
        reason = describe_error(cause)
        super().__init__(
            f"Check '{check_name}' failed: {reason}",
            ErrorCode.CHECK_FAILED,
            {"check_name": check_name, "cause": reason},
        )


# ============================================================================
# KERNEL
# ============================================================================

class KernelError(HealthError):
    """Raised for invalid kernel state transitions (e.g. use after destroy)."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.KERNEL_ERROR)


class PluginError(HealthError):
    """Wraps an exception raised from a plugin lifecycle hook."""

    def __init__(self, plugin_name: str, cause: BaseException):
        self.plugin_name = plugin_name
        self.cause = cause
        reason = describe_error(cause)
        super().__init__(
            f"Plugin '{plugin_name}' error: {reason}",
            ErrorCode.PLUGIN_ERROR,
            {"plugin_name": plugin_name, "cause": reason},
        )


class MissingDependencyError(HealthError):
    """Raised when a plugin lists a dependency that is not registered yet."""

    def __init__(self, dependency: str, plugin: str):
        self.dependency = dependency
        self.plugin = plugin
        super().__init__(
            f"Plugin '{plugin}' requires '{dependency}' which is not registered",
            ErrorCode.MISSING_DEPENDENCY,
            {"dependency": dependency, "plugin": plugin},
        )


class PluginAlreadyRegisteredError(HealthError):
    """Raised when a plugin name collides with a registered plugin."""

    def __init__(self, plugin_name: str):
        self.plugin_name = plugin_name
        super().__init__(
            f"Plugin '{plugin_name}' is already registered",
            ErrorCode.PLUGIN_ALREADY_REGISTERED,
            {"plugin_name": plugin_name},
        )


__all__ = [
    "ErrorCode",
    "describe_error",
    "HealthError",
    "InvalidIntervalError",
    "InvalidConfigError",
    "CheckTimeoutError",
    "CheckFailedError",
    "KernelError",
    "PluginError",
    "MissingDependencyError",
    "PluginAlreadyRegisteredError",
]
