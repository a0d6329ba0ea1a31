"""
Configuration validation for Yttrium.

Provides cross-field and runtime checks beyond Pydantic schema validation.
Every check appends a message; all messages are reported in one error.
"""

from pathlib import Path
from typing import Optional

from yttrium.config.schema import TrackerConfig, YttriumConfig
from yttrium.errors import ConfigurationError

__all__ = [
    "ConfigurationError",
    "validate_config",
    "validate_tracker_config",
]


def validate_config(config: YttriumConfig, config_dir: Optional[Path] = None) -> None:
    """
    Perform cross-field and runtime validation on configuration.

    Args:
        config: YttriumConfig instance to validate.
        config_dir: Optional base directory for path resolution.

    Raises:
        ConfigurationError: If validation fails.
    """
    errors: list[str] = []

    errors.extend(
        _tracker_errors(
            config.tracker,
            sensor_count=len(config.cameras),
            object_count=len(config.object.meshes) or None,
        )
    )
    errors.extend(_camera_errors(config, config_dir))

    _raise_if_any(errors)


def validate_tracker_config(
    tracker: TrackerConfig,
    sensor_count: Optional[int] = None,
    object_count: Optional[int] = None,
) -> None:
    """
    Validate filter parameters against the assembled sensors and objects.

    Args:
        tracker: Tracker parameters.
        sensor_count: Number of cameras the filter is built with.
        object_count: Number of tracked objects.

    Raises:
        ConfigurationError: If validation fails.
    """
    _raise_if_any(_tracker_errors(tracker, sensor_count, object_count))


def _raise_if_any(errors: list[str]) -> None:
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {e}" for e in errors
        )
        raise ConfigurationError(error_msg)


def _tracker_errors(
    tracker: TrackerConfig,
    sensor_count: Optional[int],
    object_count: Optional[int],
) -> list[str]:
    """Validate tracker configuration."""
    errors: list[str] = []
    obs = tracker.observation

    if tracker.ut_alpha <= 0:
        errors.append("tracker.ut_alpha must be positive")

    if not 0.0 <= tracker.update_rate <= 1.0:
        errors.append("tracker.update_rate must be within [0, 1]")

    if tracker.dt <= 0:
        errors.append("tracker.dt must be positive")

    # Observation model
    for name in ("fg_noise_std", "bg_noise_std", "bg_depth"):
        if getattr(obs, name) <= 0:
            errors.append(f"tracker.observation.{name} must be positive")

    if not 0.0 <= obs.tail_weight <= 1.0:
        errors.append("tracker.observation.tail_weight must be within [0, 1]")

    if obs.uniform_tail_min >= obs.uniform_tail_max:
        errors.append(
            "tracker.observation.uniform_tail_min must be less than uniform_tail_max"
        )

    if sensor_count is not None and obs.sensors != sensor_count:
        errors.append(
            f"tracker.observation.sensors is {obs.sensors} "
            f"but {sensor_count} camera(s) are configured"
        )

    # Transition model
    transitions = [tracker.object_transition, *(tracker.objects or [])]
    for index, params in enumerate(transitions):
        if params.linear_sigma < 0 or params.angular_sigma < 0:
            errors.append(f"object transition #{index}: sigmas must be non-negative")
        if not 0.0 <= params.velocity_factor <= 1.0:
            errors.append(
                f"object transition #{index}: velocity_factor must be within [0, 1]"
            )

    if tracker.latent_sigma < 0:
        errors.append("tracker.latent_sigma must be non-negative")

    if (
        tracker.objects is not None
        and object_count is not None
        and len(tracker.objects) != object_count
    ):
        errors.append(
            f"tracker.objects lists {len(tracker.objects)} transition(s) "
            f"for {object_count} object(s)"
        )

    return errors


def _camera_errors(config: YttriumConfig, config_dir: Optional[Path]) -> list[str]:
    """Validate camera configuration."""
    errors: list[str] = []

    if not config.cameras:
        errors.append("at least one camera must be configured")

    resolutions = {
        (c.height // c.downsampling_factor, c.width // c.downsampling_factor)
        for c in config.cameras
    }
    if len(resolutions) > 1:
        errors.append("all cameras must share one working resolution")

    for index, camera in enumerate(config.cameras):
        if camera.downsampling_factor > min(camera.width, camera.height):
            errors.append(f"cameras[{index}].downsampling_factor exceeds image size")
        for name in ("intrinsics_path", "extrinsics_path"):
            path = getattr(camera, name)
            if path is None:
                continue
            resolved = path if path.is_absolute() or config_dir is None else config_dir / path
            if not resolved.exists():
                errors.append(f"cameras[{index}].{name} not found: {path}")

    return errors
