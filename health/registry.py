# ============================================================================
# PROBE REGISTRY
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Probe registration
# PURPOSE: Ordered name -> ProbeDefinition table owned by the kernel context
# CREATED: 17 OCT 2026
# ============================================================================
"""
Probe Registry

Holds the registered probes in registration order. Sequential execution
and snapshot ordering follow that order.

Re-registering a name replaces its definition wholesale but keeps the
name's original position.

Usage:
    registry = ProbeRegistry()
    registry.register("database", ProbeDefinition(probe=ping_db, critical=True))

    @registry.probe("cache", timeout_ms=1000)
    async def check_cache():
        return await redis.ping()
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from core.models.probe import ProbeDefinition

logger = logging.getLogger(__name__)


def build_definition(probe: Any, **settings) -> ProbeDefinition:
    """
    Coerce a callable, dict or ProbeDefinition into a ProbeDefinition.

    Keyword settings override fields of a given definition.
    """
    if isinstance(probe, ProbeDefinition):
        if not settings:
            return probe
        return ProbeDefinition(**{**probe.model_dump(exclude={"probe"}), **settings, "probe": probe.probe})
    if isinstance(probe, dict):
        return ProbeDefinition(**{**probe, **settings})
    if callable(probe):
        return ProbeDefinition(probe=probe, **settings)
    raise TypeError(f"Probe must be callable, got {type(probe).__name__}")


class ProbeRegistry:
    """
    Registry of probe definitions keyed by name.

    Not thread-safe; mutated only on the event loop thread.
    """

    def __init__(self):
        self._probes: Dict[str, ProbeDefinition] = {}

    def register(self, name: str, definition: ProbeDefinition) -> bool:
        """
        Register or replace a probe.

        Returns:
            True if an existing definition was replaced
        """
        replaced = name in self._probes
        if replaced:
            logger.debug(f"Replacing probe definition: {name}")

        self._probes[name] = definition
        logger.debug(
            f"Registered probe: {name} "
            f"(critical={definition.critical}, weight={definition.weight})"
        )
        return replaced

    def probe(self, name: Optional[str] = None, **settings) -> Callable:
        """
        Decorator registering a function as a probe.

        Args:
            name: Probe name (defaults to the function name)
            **settings: ProbeDefinition fields (timeout_ms, critical, ...)
        """
        def decorator(func: Callable) -> Callable:
            self.register(name or func.__name__, build_definition(func, **settings))
            return func

        return decorator

    def unregister(self, name: str) -> bool:
        """
        Remove a probe by name.

        Returns:
            True if probe was removed
        """
        if name in self._probes:
            del self._probes[name]
            return True
        return False

    def get(self, name: str) -> Optional[ProbeDefinition]:
        """Get probe definition by name."""
        return self._probes.get(name)

    def names(self) -> List[str]:
        """Registered names in registration order."""
        return list(self._probes)

    def items(self) -> List[Tuple[str, ProbeDefinition]]:
        """Snapshot of (name, definition) pairs in registration order."""
        return list(self._probes.items())

    def as_dict(self) -> Dict[str, ProbeDefinition]:
        """Copy of the registry table."""
        return dict(self._probes)

    def clear(self) -> None:
        """Remove all registered probes."""
        self._probes.clear()

    def __len__(self) -> int:
        return len(self._probes)

    def __contains__(self, name: object) -> bool:
        return name in self._probes

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._probes))


__all__ = [
    "ProbeRegistry",
    "build_definition",
]
