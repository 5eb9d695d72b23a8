# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging for kernel, plugins and probes
# CREATED: 17 OCT 2026
# ============================================================================
"""
Structured Logging

Probe executions run concurrently on one event loop, so the logging
context is a contextvars stack: every asyncio task sees the fields of the
code that spawned it plus whatever it pushes itself.

Features:
- Context fields (probe_name, plugin, event, operation)
- Component-tagged adapters (kernel, executor, scheduler, ...)
- JSON lines for log shippers (LOG_FORMAT=json), one-line text otherwise
- Lifecycle checkpoints (kernel_initialized, kernel_destroyed)

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger("plugins.runner", ComponentType.PLUGIN)

    with log_context(probe_name="database"):
        logger.info("Probe registered", extra={"timeout_ms": 5000})
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union


class ComponentType(str, Enum):
    """Component tags attached by get_logger()."""
    KERNEL = "kernel"
    PLUGIN = "plugin"
    EXECUTOR = "executor"
    SCHEDULER = "scheduler"
    AGGREGATOR = "aggregator"
    SERVICE = "service"


# ============================================================================
# CONTEXT
# ============================================================================

@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record logged inside a log_context() block."""
    probe_name: Optional[str] = None
    plugin: Optional[str] = None
    event: Optional[str] = None
    correlation_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merged(self, **changes) -> "LogContext":
        """Copy with the given fields replaced; extra is merged key-wise."""
        extra = {**self.extra, **(changes.pop("extra", None) or {})}
        return replace(self, extra=extra, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only, with extra flattened in."""
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        result.update(self.extra)
        return result


_ROOT_CONTEXT = LogContext()

# Tasks inherit a copy of the creating task's stack
_context_stack: ContextVar[Tuple[LogContext, ...]] = ContextVar(
    "health_log_context", default=()
)


def get_current_context() -> LogContext:
    """Innermost active context (empty outside any log_context block)."""
    stack = _context_stack.get()
    return stack[-1] if stack else _ROOT_CONTEXT


@contextmanager
def log_context(**kwargs) -> Iterator[LogContext]:
    """
    Push context fields for the duration of the block.

    Unknown keyword names raise TypeError.

    Example:
        with log_context(plugin="runner", operation="init"):
            logger.info("Starting scheduler")
    """
    context = get_current_context().merged(**kwargs)
    token = _context_stack.set(_context_stack.get() + (context,))
    try:
        yield context
    finally:
        _context_stack.reset(token)


# ============================================================================
# FORMATTERS
# ============================================================================

def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, include_context: bool = True, include_source: bool = True):
        super().__init__()
        self.include_context = include_context
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _utc_timestamp(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = get_current_context().to_dict() if self.include_context else {}
        if context:
            entry["context"] = context

        data = getattr(record, "extra", None)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_source:
            entry["source"] = f"{record.filename}:{record.lineno}:{record.funcName}"

        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line text with plugin/probe/event context inline."""

    CONTEXT_FIELDS = (("plugin", "plugin"), ("probe_name", "probe"), ("event", "event"))

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        tags = [
            f"{label}={getattr(context, name)}"
            for name, label in self.CONTEXT_FIELDS
            if getattr(context, name)
        ]

        line = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        line += f" {record.levelname:<8} {record.name}"
        if tags:
            line += f" [{', '.join(tags)}]"
        line += f": {record.getMessage()}"

        data = getattr(record, "extra", None)
        if data:
            line += f" {data}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGERS
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """
    Adapter copying the active context and the component tag into
    ``record.extra``.
    """

    def process(self, msg, kwargs):
        data = dict(kwargs.get("extra") or {})
        data.update(get_current_context().to_dict())

        component = (self.extra or {}).get("component")
        if component is not None:
            data.setdefault("component", getattr(component, "value", component))

        kwargs["extra"] = {"extra": data}
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """Context-aware logger for `name`, optionally tagged with a component."""
    return ContextLogger(logging.getLogger(name), {"component": component})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    include_source: bool = True,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Level name or number
        json_output: JSON lines (also selected by LOG_FORMAT=json)
        include_source: Add file:line:function to JSON records
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    use_json = json_output or os.getenv("LOG_FORMAT", "").lower() == "json"
    formatter: logging.Formatter = (
        StructuredFormatter(include_source=include_source) if use_json else HumanFormatter()
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> None:
    """
    Log a named lifecycle checkpoint at INFO.

    Args:
        name: Checkpoint name (e.g. "kernel_initialized")
        data: Optional payload
        logger: Logger to use (default: "checkpoint")
    """
    payload: Dict[str, Any] = {"checkpoint": name, "timestamp": _utc_timestamp()}
    context = get_current_context()
    if context.plugin:
        payload["plugin"] = context.plugin
    if data:
        payload["data"] = data

    (logger or logging.getLogger("checkpoint")).info(
        f"CHECKPOINT: {name}", extra={"extra": payload}
    )


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
