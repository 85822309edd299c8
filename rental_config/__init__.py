"""
rental_config -- public entrypoint for engine settings.

Responsibility:
    ``get_active_settings()`` loads a YAML configuration set (by default
    ``sets/default.yaml``) and returns its frozen ``EngineSettings``.
    Per-installation overrides stored in the database are layered on top
    by the module configs (``CollectionConfig.from_settings`` and
    ``ContractConfig.from_settings``), not here.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``InvalidSettingError`` -- a value fails validation.
"""

from __future__ import annotations

from pathlib import Path

from rental_config.loader import load_configuration_set
from rental_config.schema import EngineConfigurationSet, EngineSettings
from rental_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_configuration(path: Path | None = None) -> EngineConfigurationSet:
    config_set = load_configuration_set(path or DEFAULT_CONFIG_PATH)
    logger.info(
        "rental_config_loaded",
        extra={
            "config_id": config_set.config_id,
            "config_version": config_set.version,
            "checksum": config_set.checksum,
        },
    )
    return config_set


def get_active_settings(path: Path | None = None) -> EngineSettings:
    """Engine thresholds from the active configuration set."""
    return get_active_configuration(path).settings


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineConfigurationSet",
    "EngineSettings",
    "get_active_configuration",
    "get_active_settings",
]
