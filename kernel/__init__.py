# ============================================================================
# KERNEL MODULE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Kernel - Module exports
# PURPOSE: Plugin micro-kernel, shared context and event bus
# CREATED: 17 OCT 2026
# ============================================================================
"""
Kernel Module

Architecture:
- Kernel: plugin registration and ordered lifecycle
- HealthContext: explicit shared state handed to plugins
- EventBus: synchronous publish/subscribe between plugins
- KernelPlugin: base class for installable components
"""

from kernel.events import EventBus, KernelEvent, event_key
from kernel.context import HealthContext, MetricsAccumulator, ProbeMetrics
from kernel.plugin import KernelPlugin
from kernel.kernel import Kernel, create_health_kernel

__all__ = [
    # Events
    "EventBus",
    "KernelEvent",
    "event_key",
    # Context
    "HealthContext",
    "MetricsAccumulator",
    "ProbeMetrics",
    # Kernel
    "KernelPlugin",
    "Kernel",
    "create_health_kernel",
]
