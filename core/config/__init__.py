# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Module

Provides environment defaults, the validated options model and the YAML
options loader.
"""

from core.config.defaults import (
    ProbeDefaults,
    ThresholdDefaults,
    HistoryDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)
from core.config.options import HealthOptions
from core.config.loader import load_options

__all__ = [
    "ProbeDefaults",
    "ThresholdDefaults",
    "HistoryDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
    "HealthOptions",
    "load_options",
]
