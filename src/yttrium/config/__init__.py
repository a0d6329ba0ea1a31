"""Configuration module for Yttrium."""

from yttrium.config.schema import (
    CameraConfig,
    InitialBeliefConfig,
    LogLevel,
    ObjectConfig,
    ObjectTransitionConfig,
    ObservationConfig,
    ProjectConfig,
    RenderBackend,
    TrackerConfig,
    YttriumConfig,
)
from yttrium.config.loader import (
    get_default_config,
    load_config,
    parse_config,
    parse_model,
    save_config,
)
from yttrium.config.validation import (
    ConfigurationError,
    validate_config,
    validate_tracker_config,
)

__all__ = [
    "CameraConfig",
    "ConfigurationError",
    "InitialBeliefConfig",
    "LogLevel",
    "ObjectConfig",
    "ObjectTransitionConfig",
    "ObservationConfig",
    "ProjectConfig",
    "RenderBackend",
    "TrackerConfig",
    "YttriumConfig",
    "get_default_config",
    "load_config",
    "parse_config",
    "parse_model",
    "save_config",
    "validate_config",
    "validate_tracker_config",
]
