# ============================================================================
# KERNEL EVENT BUS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Kernel - Synchronous publish/subscribe
# PURPOSE: Inter-plugin notifications (probe completed, status changed, ...)
# CREATED: 17 OCT 2026
# ============================================================================
"""
Kernel Event Bus

In-process, synchronous publish/subscribe keyed by event name.

Semantics:
- Handlers run in subscription order, on the emitter's stack
- Subscribing the same handler twice to one event is ignored; on() and
  once() subscriptions of one handler are distinct and both fire
- A raising handler is logged; the remaining handlers still run and the
  emitter never sees the error
- once() handlers are removed before their first call
- off() accepts the original handler of a once() subscription

Event names may be given as KernelEvent members or plain strings.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Union

from core.logging import log_context

logger = logging.getLogger(__name__)


EventHandler = Callable[[Any], Any]
EventName = Union[str, Enum]


class KernelEvent(str, Enum):
    """Events emitted by the kernel's core and optional plugins."""
    PROBE_REGISTERED = "probe:registered"          # {name, definition}
    PROBE_UNREGISTERED = "probe:unregistered"      # {name}
    PROBE_COMPLETED = "probe:completed"            # {name, outcome, duration_ms, attempts}
    STATUS_CHANGED = "status:changed"              # {previous, current, score}
    THRESHOLDS_CHANGED = "thresholds:changed"      # {healthy, degraded}
    THRESHOLDS_RESET = "thresholds:reset"          # {healthy, degraded}
    HISTORY_CLEARED = "history:cleared"            # {}
    HISTORY_CHECK_CLEARED = "history:check_cleared"  # {name}
    RUNNER_INSTALLED = "runner:installed"          # {executor, scheduler}
    AGGREGATOR_INSTALLED = "aggregator:installed"  # {aggregator}


def event_key(event: EventName) -> str:
    """Plain string key for an event name (Enum hashes differ from their values)."""
    if isinstance(event, Enum):
        return str(event.value)
    return str(event)


@dataclass(eq=False)
class _Subscription:
    handler: EventHandler
    once: bool = False


class EventBus:
    """Synchronous event bus with per-handler fault isolation."""

    def __init__(self):
        self._handlers: Dict[str, List[_Subscription]] = {}

    def on(self, event: EventName, handler: EventHandler) -> None:
        """Subscribe a handler. Duplicate subscriptions are ignored."""
        self._subscribe(event_key(event), handler, once=False)

    def once(self, event: EventName, handler: EventHandler) -> None:
        """
        Subscribe a handler for the next emission only.

        Independent of an on() subscription of the same handler.
        """
        self._subscribe(event_key(event), handler, once=True)

    def off(self, event: EventName, handler: EventHandler) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if the handler was subscribed
        """
        key = event_key(event)
        subscriptions = self._handlers.get(key)
        if not subscriptions:
            return False

        remaining = [s for s in subscriptions if s.handler != handler]
        removed = len(remaining) != len(subscriptions)
        if remaining:
            self._handlers[key] = remaining
        else:
            del self._handlers[key]
        return removed

    def emit(self, event: EventName, payload: Any = None) -> int:
        """
        Deliver payload to every handler of event.

        Returns:
            Number of handlers invoked
        """
        key = event_key(event)
        subscriptions = list(self._handlers.get(key, ()))
        invoked = 0

        for subscription in subscriptions:
            # Skip handlers removed by an earlier handler during this emit
            if subscription not in self._handlers.get(key, ()):
                continue
            if subscription.once:
                self._remove(key, subscription)

            invoked += 1
            try:
                result = subscription.handler(payload)
            except Exception as e:
                with log_context(event=key):
                    logger.exception(f"Error in event handler for '{key}': {e}")
                continue

            if inspect.iscoroutine(result):
                result.close()
                logger.error(
                    f"Event handler for '{key}' returned a coroutine; "
                    f"handlers must be synchronous"
                )

        return invoked

    def listener_count(self, event: EventName) -> int:
        """Number of handlers subscribed to event."""
        return len(self._handlers.get(event_key(event), ()))

    def clear(self) -> None:
        """Remove every subscription."""
        self._handlers.clear()

    def _subscribe(self, key: str, handler: EventHandler, once: bool) -> None:
        subscriptions = self._handlers.setdefault(key, [])
        if any(s.handler == handler and s.once == once for s in subscriptions):
            return
        subscriptions.append(_Subscription(handler=handler, once=once))

    def _remove(self, key: str, subscription: _Subscription) -> None:
        subscriptions = self._handlers.get(key)
        if not subscriptions:
            return
        remaining = [s for s in subscriptions if s is not subscription]
        if remaining:
            self._handlers[key] = remaining
        else:
            del self._handlers[key]


__all__ = [
    "KernelEvent",
    "EventBus",
    "EventHandler",
    "EventName",
    "event_key",
]
