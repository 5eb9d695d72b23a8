# ============================================================================
# VERSION - HEALTH KERNEL
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# ============================================================================
"""
Version information for the health kernel.

This is the single source of truth for the package version.
Updated manually for each release. Plugin versions default to it.
"""
# Version format: major.minor.patch
__version__ = "1.0.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-17"

EPOCH = 1
CODENAME = "Health Kernel"
