# ============================================================================
# OPTIONS LOADER
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Core - YAML configuration loading
# PURPOSE: Read HealthOptions from a YAML file
# CREATED: 17 OCT 2026
# ============================================================================
"""
Options Loader

Reads kernel options from YAML. File values override the environment
defaults; nested thresholds are merged key by key.

Example file:
    timeout_ms: 3000
    retries: 1
    interval: 15s
    thresholds:
      healthy: 90
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from core.config.defaults import Defaults
from core.config.options import HealthOptions
from core.errors import InvalidConfigError, InvalidIntervalError

logger = logging.getLogger(__name__)


def load_options(
    path: Union[str, Path],
    defaults: Optional[Defaults] = None,
    **overrides,
) -> HealthOptions:
    """
    Load HealthOptions from a YAML file.

    Args:
        path: YAML file path
        defaults: Base defaults (environment defaults when omitted)
        **overrides: Values applied on top of the file (e.g. probes)

    Returns:
        Validated HealthOptions

    Raises:
        InvalidConfigError: File missing, unparsable or invalid
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise InvalidConfigError(
            f"Cannot read options file {path}: {e}", {"path": str(path)}
        ) from e
    except yaml.YAMLError as e:
        raise InvalidConfigError(
            f"Invalid YAML in {path}: {e}", {"path": str(path)}
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfigError(
            f"Options file {path} must contain a mapping, got {type(data).__name__}",
            {"path": str(path)},
        )

    base = HealthOptions.from_defaults(defaults)
    merged: Dict[str, Any] = base.model_dump(exclude={"probes"})
    for key, value in data.items():
        if key == "thresholds" and isinstance(value, dict):
            merged["thresholds"] = {**merged["thresholds"], **value}
        else:
            merged[key] = value
    merged.update(overrides)

    try:
        options = HealthOptions.model_validate(merged)
    except (ValidationError, InvalidIntervalError) as e:
        raise InvalidConfigError(
            f"Invalid options in {path}: {e}", {"path": str(path)}
        ) from e

    logger.info(f"Loaded health options from {path}")
    return options


__all__ = ["load_options"]
