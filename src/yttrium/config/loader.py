"""
Configuration loader for Yttrium.

Handles YAML loading, resolution of relative paths against the config file
location and conversion of schema errors into ConfigurationError.
"""

from pathlib import Path
from typing import Any, Mapping, Optional, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from yttrium.config.schema import YttriumConfig
from yttrium.config.validation import validate_config
from yttrium.errors import ConfigurationError, ResourceNotFound

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_model(model: type[ModelT], raw: Mapping[str, Any]) -> ModelT:
    """
    Validate a mapping against a configuration model.

    Args:
        model: Pydantic model class.
        raw: Raw configuration mapping.

    Returns:
        Validated model instance.

    Raises:
        ConfigurationError: If the mapping does not satisfy the schema.
    """
    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        details = "\n".join(
            f"  - {'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(
            f"Configuration validation failed:\n{details}"
        ) from e


def parse_config(
    raw: Mapping[str, Any], config_dir: Optional[Path] = None
) -> YttriumConfig:
    """
    Build and validate a root configuration from a mapping.

    Args:
        raw: Raw configuration mapping.
        config_dir: Base directory of relative paths.

    Returns:
        Validated YttriumConfig instance.
    """
    if config_dir is not None:
        raw = _resolve_paths(dict(raw), config_dir)
    config = parse_model(YttriumConfig, raw)
    validate_config(config, config_dir)
    return config


def load_config(config_path: Path) -> YttriumConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated YttriumConfig instance.

    Raises:
        ResourceNotFound: If the configuration file does not exist.
        ConfigurationError: If the configuration is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ResourceNotFound(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML in {config_path}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Top level of {config_path} must be a mapping")

    return parse_config(raw_config, config_path.parent)


def _resolve_paths(config: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    """
    Recursively resolve relative paths in configuration.

    Values of keys ending with '_path' or '_dir' are made relative to base_dir.
    """
    result: dict[str, Any] = {}

    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _resolve_paths(value, base_dir)
        elif isinstance(value, list):
            result[key] = [
                _resolve_paths(item, base_dir) if isinstance(item, dict) else item
                for item in value
            ]
        elif isinstance(value, str) and (key.endswith("_path") or key.endswith("_dir")):
            path = Path(value)
            result[key] = str(path if path.is_absolute() else base_dir / path)
        else:
            result[key] = value

    return result


def save_config(config: YttriumConfig, output_path: Path) -> None:
    """
    Save configuration to a YAML file.

    Args:
        config: YttriumConfig instance to save.
        output_path: Path to the output YAML file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="json")

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)


def get_default_config() -> YttriumConfig:
    """
    Get default configuration with all default values.

    Returns:
        YttriumConfig instance with defaults.
    """
    return YttriumConfig()
