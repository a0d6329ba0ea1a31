"""
Shared pytest fixtures for Yttrium tests.
"""

from typing import Callable

import numpy as np
import pytest

from yttrium.config.schema import TrackerConfig
from yttrium.estimation.gaussian_filter import RobustGaussianFilter
from yttrium.estimation.observation import (
    ObservationParameters,
    RobustDepthObservationModel,
)
from yttrium.estimation.quadrature import UnscentedQuadrature
from yttrium.estimation.state import StateLayout
from yttrium.estimation.transition import ObjectMotionParameters, ObjectTransitionModel
from yttrium.perception.calib import CameraData, CameraIntrinsics
from yttrium.perception.objects import ObjectModel, TriangleMesh
from yttrium.perception.rendering.base import IRenderer
from yttrium.utils.math3d import euler_to_rotation_vector

BOX_SIZE = (0.2, 0.15, 0.1)


class PlaneRenderer(IRenderer):
    """Renders a fronto-parallel plane at the first object's z position."""

    def __init__(self, height: int = 3, width: int = 4) -> None:
        self.height = height
        self.width = width
        self.calls = 0

    def render(self, poses: np.ndarray) -> np.ndarray:
        self.calls += 1
        return np.full((1, self.height, self.width), float(poses[0, 2]))

    @property
    def backend_name(self) -> str:
        return "plane"

    @property
    def sensors(self) -> int:
        return 1

    @property
    def pixel_count(self) -> int:
        return self.height * self.width


@pytest.fixture
def intrinsics() -> CameraIntrinsics:
    """Small depth camera, 64x48 pixels."""
    K = np.array(
        [
            [80.0, 0.0, 31.5],
            [0.0, 80.0, 23.5],
            [0.0, 0.0, 1.0],
        ]
    )
    return CameraIntrinsics(K=K, width=64, height=48)


@pytest.fixture
def camera_data(intrinsics: CameraIntrinsics) -> CameraData:
    """Camera at the world origin looking along +z."""
    return CameraData(intrinsics=intrinsics)


@pytest.fixture
def box_model() -> ObjectModel:
    """Single box object."""
    return ObjectModel(meshes=(TriangleMesh.box(BOX_SIZE),))


@pytest.fixture
def tilted_pose() -> np.ndarray:
    """Box 1 m in front of the camera, tilted so that every face slants."""
    rvec = euler_to_rotation_vector(0.5, 0.35, 0.0)
    return np.array([[0.0, 0.0, 1.0, *rvec]])


@pytest.fixture
def tracker_config() -> TrackerConfig:
    """Tracker parameters matching the synthetic test scene."""
    return TrackerConfig(
        ut_alpha=1.0,
        update_rate=1.0,
        dt=1.0,
        observation={
            "bg_depth": 2.5,
            "fg_noise_std": 0.01,
            "bg_noise_std": 0.05,
            "tail_weight": 0.1,
            "uniform_tail_min": 0.0,
            "uniform_tail_max": 5.0,
            "sensors": 1,
        },
        object_transition={
            "linear_sigma": 2e-4,
            "angular_sigma": 2e-3,
            "velocity_factor": 0.0,
        },
        initial={
            "linear_std": 0.002,
            "angular_std": 0.01,
            "velocity_std": 0.0,
        },
    )


@pytest.fixture
def plane_renderer() -> PlaneRenderer:
    """Fake renderer observing only the z position of object 0."""
    return PlaneRenderer()


@pytest.fixture
def make_filter(
    plane_renderer: PlaneRenderer,
) -> Callable[..., RobustGaussianFilter]:
    """Factory for single-object filters observing a plane."""

    def factory(
        update_rate: float = 1.0,
        alpha: float = 1.0,
        linear_sigma: float = 0.0,
        angular_sigma: float = 0.0,
        velocity_factor: float = 1.0,
        tail_weight: float = 0.0,
        dt: float = 1.0,
    ) -> RobustGaussianFilter:
        layout = StateLayout(object_count=1)
        transition = ObjectTransitionModel(
            layout,
            [ObjectMotionParameters(linear_sigma, angular_sigma, velocity_factor)],
            dt=dt,
        )
        observation = RobustDepthObservationModel(
            ObservationParameters(
                bg_depth=2.5,
                fg_noise_std=0.01,
                bg_noise_std=0.05,
                tail_weight=tail_weight,
                uniform_tail_min=0.0,
                uniform_tail_max=5.0,
            ),
            plane_renderer,
            layout,
        )
        return RobustGaussianFilter(
            transition, observation, UnscentedQuadrature(alpha), update_rate
        )

    return factory
