# ============================================================================
# KERNEL PLUGIN INTERFACE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Kernel - Plugin base class
# PURPOSE: Contract every installable kernel component implements
# CREATED: 17 OCT 2026
# ============================================================================
"""
Kernel Plugin Interface

Lifecycle:
1. install(kernel)    - synchronous, runs immediately inside kernel.use()
2. on_init(context)   - once, in dependency order, may be async
3. on_destroy()       - once, in reverse registration order, may be async
4. on_error(error)    - called when on_init/on_destroy raised

Example:
    class AuditPlugin(KernelPlugin):
        name = "audit"
        dependencies = ("runner",)

        def install(self, kernel):
            kernel.on(KernelEvent.PROBE_COMPLETED, self._record)

        async def on_init(self, context):
            await self.sink.connect()
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Optional, Sequence

from __version__ import __version__

if TYPE_CHECKING:
    from kernel.context import HealthContext
    from kernel.kernel import Kernel


class KernelPlugin(ABC):
    """
    Base class for kernel plugins.

    Attributes:
        name: Unique plugin name
        version: Plugin version string
        dependencies: Plugin names that must be registered first
    """

    name: str = "unnamed"
    version: str = __version__
    dependencies: Sequence[str] = ()

    @abstractmethod
    def install(self, kernel: "Kernel") -> None:
        """Wire the plugin into the kernel context and subscribe to events."""

    def on_init(self, context: "HealthContext") -> Optional[Awaitable[Any]]:
        """Startup hook. May be a coroutine function."""
        return None

    def on_destroy(self) -> Optional[Awaitable[Any]]:
        """Teardown hook. May be a coroutine function."""
        return None

    def on_error(self, error: BaseException) -> None:
        """Called with an error raised from on_init or on_destroy."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} v{self.version}>"


__all__ = ["KernelPlugin"]
