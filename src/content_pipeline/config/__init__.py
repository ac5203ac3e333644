"""Configuration module for content_pipeline."""

from content_pipeline.config.engine_config import (
    EngineConfig,
    EngineConfigError,
    default_settings_path,
    load_engine_config,
)

__all__ = [
    "EngineConfig",
    "EngineConfigError",
    "default_settings_path",
    "load_engine_config",
]
