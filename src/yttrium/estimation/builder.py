"""
Tracker assembly.

Validates the filter parameters against the camera data and object model,
selects the renderer backend once and wires quadrature, transition and
observation models into an ObjectTracker. Any failure aborts assembly.
"""

from typing import Any, Callable, Mapping, Optional, Sequence, Union

from yttrium.config.loader import parse_model
from yttrium.config.schema import TrackerConfig
from yttrium.config.validation import validate_tracker_config
from yttrium.errors import ConfigurationError
from yttrium.estimation.gaussian_filter import Belief, RobustGaussianFilter
from yttrium.estimation.observation import (
    ObservationParameters,
    RobustDepthObservationModel,
)
from yttrium.estimation.quadrature import UnscentedQuadrature
from yttrium.estimation.state import StateLayout
from yttrium.estimation.tracker import ObjectTracker
from yttrium.estimation.transition import ObjectMotionParameters, ObjectTransitionModel
from yttrium.logging.setup import get_logger
from yttrium.perception.calib import CameraData
from yttrium.perception.objects import (
    ObjectModel,
    ObjectResourceIdentifier,
    resolve_object_model,
)
from yttrium.perception.rendering import create_renderer

logger = get_logger(__name__)


def _tracker_config(parameters: Union[TrackerConfig, Mapping[str, Any]]) -> TrackerConfig:
    """Copy or parse parameters so later caller mutation has no effect."""
    if isinstance(parameters, TrackerConfig):
        return parameters.model_copy(deep=True)
    if isinstance(parameters, Mapping):
        return parse_model(TrackerConfig, parameters)
    raise ConfigurationError(
        f"tracker parameters must be a TrackerConfig or mapping, "
        f"got {type(parameters).__name__}"
    )


def _motion_parameters(
    config: TrackerConfig, object_count: int
) -> list[ObjectMotionParameters]:
    sources = config.objects
    if sources is None:
        sources = [config.object_transition] * object_count
    return [
        ObjectMotionParameters(
            linear_sigma=p.linear_sigma,
            angular_sigma=p.angular_sigma,
            velocity_factor=p.velocity_factor,
        )
        for p in sources
    ]


def build(
    parameters: Union[TrackerConfig, Mapping[str, Any]],
    camera_data: Union[CameraData, Sequence[CameraData]],
    object_model: Union[ObjectModel, ObjectResourceIdentifier],
    initial_belief: Optional[Belief] = None,
    object_loader: Optional[Callable[[ObjectResourceIdentifier], ObjectModel]] = None,
) -> ObjectTracker:
    """
    Assemble a tracker.

    Args:
        parameters: Tracker parameters, or a mapping parsed into them.
        camera_data: Camera data, one entry per sensor.
        object_model: Object model, or an identifier resolved by the loader.
        initial_belief: Optional belief the tracker starts from.
        object_loader: Optional replacement for the mesh file loader.

    Returns:
        Ready ObjectTracker (initialized if initial_belief was given).

    Raises:
        ConfigurationError: If the parameters are invalid or inconsistent
            with the camera data or object model.
        ResourceNotFound: If the object model cannot be resolved.
        CapabilityUnavailable: If the requested backend is not supported.
    """
    config = _tracker_config(parameters)

    cameras = [camera_data] if isinstance(camera_data, CameraData) else list(camera_data)
    model = resolve_object_model(object_model, object_loader)

    if model.is_empty:
        raise ConfigurationError(
            "object model is empty or contains a mesh without faces: "
            f"{model.names or '[]'}"
        )
    validate_tracker_config(
        config, sensor_count=len(cameras), object_count=model.object_count
    )

    layout = StateLayout(
        object_count=model.object_count, latent_dimension=config.latent_dimension
    )
    renderer = create_renderer(config.backend, model, cameras)
    transition = ObjectTransitionModel(
        layout,
        _motion_parameters(config, model.object_count),
        latent_sigma=config.latent_sigma,
        dt=config.dt,
    )
    observation = RobustDepthObservationModel(
        ObservationParameters.from_config(config.observation),
        renderer,
        layout,
        workers=config.workers,
    )
    gaussian_filter = RobustGaussianFilter(
        transition,
        observation,
        UnscentedQuadrature(config.ut_alpha),
        update_rate=config.update_rate,
    )
    tracker = ObjectTracker(gaussian_filter, layout, initial=config.initial)
    if initial_belief is not None:
        tracker.reset(initial_belief)

    logger.info(
        "tracker_built",
        backend=renderer.backend_name,
        objects=model.names,
        sensors=renderer.sensors,
        pixels=renderer.pixel_count,
        n_state=layout.n_state,
        ut_alpha=config.ut_alpha,
        update_rate=config.update_rate,
    )
    return tracker
