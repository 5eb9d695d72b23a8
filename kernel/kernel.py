# ============================================================================
# HEALTH KERNEL
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Kernel - Plugin lifecycle
# PURPOSE: Plugin registration, ordered init/destroy and event delegation
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Kernel

State machine: Created -> Initialized -> Destroyed. The initialized flag
is never unset, even after destroy().

Traversal orders:
- init():    depth-first dependency order (dependencies before dependents),
             fail-fast: the first failing hook aborts startup as PluginError
- destroy(): reverse registration order, best-effort: failures are logged
             and the remaining hooks still run

A failed init() leaves already-started plugins running; call destroy() to
tear them down.

Usage:
    kernel = create_health_kernel(HealthOptions(interval="10s"))
    kernel.use(RunnerPlugin()).use(AggregatorPlugin())
    await kernel.init()
    ...
    await kernel.destroy()
"""

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Optional, Set, Union

from core.config.options import HealthOptions
from core.errors import (
    KernelError,
    MissingDependencyError,
    PluginAlreadyRegisteredError,
    PluginError,
)
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from kernel.context import HealthContext
from kernel.events import EventHandler, EventName
from kernel.plugin import KernelPlugin

logger = logging.getLogger(__name__)


class Kernel:
    """Plugin micro-kernel owning one HealthContext."""

    def __init__(self, context: HealthContext):
        self._context = context
        self._plugins: Dict[str, KernelPlugin] = {}
        self._initialized = False
        self._destroyed = False

    # =========================================================================
    # STATE
    # =========================================================================

    def get_context(self) -> HealthContext:
        """Shared state handle."""
        return self._context

    @property
    def context(self) -> HealthContext:
        return self._context

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def get_plugin(self, name: str) -> Optional[KernelPlugin]:
        """Registered plugin by name."""
        return self._plugins.get(name)

    def list_plugins(self) -> List[str]:
        """Plugin names in registration order."""
        return list(self._plugins)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def use(self, plugin: KernelPlugin) -> "Kernel":
        """
        Register a plugin and run its install hook.

        Returns:
            self, for chaining

        Raises:
            KernelError: Kernel already destroyed
            PluginAlreadyRegisteredError: Name collision
            MissingDependencyError: A dependency is not registered yet
        """
        if self._destroyed:
            raise KernelError("Cannot register plugin on destroyed kernel")

        if plugin.name in self._plugins:
            raise PluginAlreadyRegisteredError(plugin.name)

        for dependency in plugin.dependencies:
            if dependency not in self._plugins:
                raise MissingDependencyError(dependency, plugin.name)

        with log_context(plugin=plugin.name, operation="install"):
            plugin.install(self)

        self._plugins[plugin.name] = plugin
        logger.info(f"Plugin '{plugin.name}' v{plugin.version} registered")
        return self

    async def init(self) -> None:
        """
        Run every plugin's on_init in dependency order.

        Raises:
            KernelError: Kernel already destroyed
            PluginError: A hook raised; remaining plugins are not initialized
        """
        if self._initialized:
            logger.warning("Kernel already initialized")
            return

        if self._destroyed:
            raise KernelError("Cannot initialize destroyed kernel")

        logger.info("Initializing kernel...")

        for plugin in self._init_order():
            with log_context(plugin=plugin.name, operation="init"):
                try:
                    await _maybe_await(plugin.on_init(self._context))
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Plugin '{plugin.name}' failed to initialize: {e}")
                    self._notify_error(plugin, e)
                    raise PluginError(plugin.name, e) from e
                logger.debug(f"Plugin '{plugin.name}' initialized")

        self._initialized = True
        log_checkpoint("kernel_initialized", {"plugins": self.list_plugins()}, logger=logger)

    async def destroy(self) -> None:
        """
        Run every plugin's on_destroy in reverse registration order.

        Idempotent. Hook failures are logged and do not stop teardown.
        """
        if self._destroyed:
            return

        logger.info("Destroying kernel...")

        for plugin in reversed(list(self._plugins.values())):
            with log_context(plugin=plugin.name, operation="destroy"):
                try:
                    await _maybe_await(plugin.on_destroy())
                    logger.debug(f"Plugin '{plugin.name}' destroyed")
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.exception(f"Error destroying plugin '{plugin.name}': {e}")
                    self._notify_error(plugin, e)

        self._plugins.clear()
        self._destroyed = True
        log_checkpoint("kernel_destroyed", logger=logger)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def emit(self, event: EventName, payload: Any = None) -> int:
        """Publish an event on the context's bus."""
        return self._context.events.emit(event, payload)

    def on(self, event: EventName, handler: EventHandler) -> None:
        """Subscribe to an event."""
        self._context.events.on(event, handler)

    def once(self, event: EventName, handler: EventHandler) -> None:
        """Subscribe to the next occurrence of an event."""
        self._context.events.once(event, handler)

    def off(self, event: EventName, handler: EventHandler) -> bool:
        """Unsubscribe from an event."""
        return self._context.events.off(event, handler)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _init_order(self) -> List[KernelPlugin]:
        ordered: List[KernelPlugin] = []
        visited: Set[str] = set()

        def visit(plugin: KernelPlugin) -> None:
            if plugin.name in visited:
                return
            visited.add(plugin.name)
            for dependency in plugin.dependencies:
                dependency_plugin = self._plugins.get(dependency)
                if dependency_plugin is not None:
                    visit(dependency_plugin)
            ordered.append(plugin)

        for plugin in self._plugins.values():
            visit(plugin)

        return ordered

    def _notify_error(self, plugin: KernelPlugin, error: BaseException) -> None:
        try:
            plugin.on_error(error)
        except Exception as e:
            logger.exception(f"Error hook of plugin '{plugin.name}' raised: {e}")


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


# ============================================================================
# FACTORY
# ============================================================================

def create_health_kernel(
    options: Union[HealthOptions, Dict[str, Any], None] = None,
    **overrides,
) -> Kernel:
    """
    Create a kernel with a fresh HealthContext.

    Args:
        options: HealthOptions, a dict of option values, or None for the
            environment defaults
        **overrides: Option values applied when options is None or a dict
    """
    if options is None:
        options = HealthOptions.from_defaults(**overrides)
    elif isinstance(options, dict):
        options = HealthOptions.from_defaults(**{**options, **overrides})

    context = HealthContext(
        options=options,
        logger=get_logger("kernel", ComponentType.KERNEL),
    )
    return Kernel(context)


__all__ = [
    "Kernel",
    "create_health_kernel",
]
