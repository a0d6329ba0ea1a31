"""
Synthetic depth scenes for Yttrium testing.

Generates ground-truth trajectories and renders the depth images a camera
would record of them, optionally in front of a background wall and behind
an occluding plane.
"""

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from yttrium.dataset import TrackingDataset
from yttrium.errors import InvalidDimension
from yttrium.logging.setup import get_logger
from yttrium.perception.calib import CameraData
from yttrium.perception.objects import ObjectModel
from yttrium.perception.rendering.raycast import CpuRayCastRenderer

logger = get_logger(__name__)


def static_trajectory(poses: NDArray[np.float64], steps: int) -> NDArray[np.float64]:
    """
    Objects at rest.

    Args:
        poses: Object poses, shape (object_count, 6) or (6,).
        steps: Number of frames.

    Returns:
        Trajectory, shape (steps, object_count, 6).
    """
    poses = np.asarray(poses, dtype=np.float64).reshape(-1, 6)
    return np.repeat(poses[None], steps, axis=0)


def constant_velocity_trajectory(
    poses: NDArray[np.float64],
    velocities: NDArray[np.float64],
    steps: int,
    dt: float,
) -> NDArray[np.float64]:
    """
    Objects moving with constant linear and angular velocity.

    Row t holds the poses after t time steps, using the same additive pose
    integration as the tracker's transition model.

    Args:
        poses: Initial poses, shape (object_count, 6).
        velocities: Velocities, shape (object_count, 6).
        steps: Number of frames.
        dt: Time step in seconds.

    Returns:
        Trajectory, shape (steps, object_count, 6).
    """
    poses = np.asarray(poses, dtype=np.float64).reshape(-1, 6)
    velocities = np.asarray(velocities, dtype=np.float64).reshape(-1, 6)
    if poses.shape != velocities.shape:
        raise InvalidDimension("poses and velocities must have the same shape")
    t = np.arange(steps, dtype=np.float64)[:, None, None]
    return poses[None] + t * dt * velocities[None]


class SyntheticScene:
    """
    Noise-free (or Gaussian-noise) depth renderings of known poses.

    Pixels that see no object show the background wall if one is set and
    are missing (NaN) otherwise. An occluder is a fronto-parallel plane
    covering the whole image at a fixed depth.
    """

    def __init__(
        self,
        object_model: ObjectModel,
        cameras: Sequence[CameraData],
        background_depth: Optional[float] = None,
        occluder_depth: Optional[float] = None,
        noise_std: float = 0.0,
        seed: Optional[int] = None,
    ) -> None:
        self.object_model = object_model
        self.cameras = tuple(cameras)
        self.background_depth = background_depth
        self.occluder_depth = occluder_depth
        self.noise_std = noise_std
        self._renderer = CpuRayCastRenderer(object_model, self.cameras)
        self._rng = np.random.default_rng(seed)

    @property
    def camera_matrices(self) -> NDArray[np.float64]:
        """Working-resolution camera matrix per sensor, shape (S, 3, 3)."""
        return np.stack([c.effective_intrinsics.K for c in self.cameras])

    def render(self, poses: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Depth images of the objects at ``poses``.

        Returns:
            Depth in meters, shape (sensors, H, W); NaN marks missing depth.
        """
        poses = np.asarray(poses, dtype=np.float64).reshape(-1, 6)
        depth = self._renderer.render(poses)

        fill = np.nan if self.background_depth is None else self.background_depth
        depth = np.where(np.isinf(depth), fill, depth)
        if self.occluder_depth is not None:
            depth = np.fmin(depth, self.occluder_depth)
        if self.noise_std > 0:
            depth = depth + self._rng.normal(0.0, self.noise_std, depth.shape)
        return depth

    def record(
        self,
        trajectory: NDArray[np.float64],
        dt: float,
        dataset: TrackingDataset,
        start_time_s: float = 0.0,
    ) -> TrackingDataset:
        """
        Render a trajectory into a dataset.

        Ground truth of every frame is the flattened object poses.

        Args:
            trajectory: Poses per frame, shape (steps, object_count, 6).
            dt: Time between frames in seconds.
            dataset: Dataset receiving the frames.
            start_time_s: Timestamp of the first frame.

        Returns:
            The dataset, for chaining.
        """
        matrices = self.camera_matrices
        for step, poses in enumerate(trajectory):
            dataset.add_frame(
                self.render(poses),
                matrices,
                timestamp_s=start_time_s + step * dt,
                ground_truth=np.asarray(poses).reshape(-1),
            )
        logger.info(
            "scene_recorded",
            frames=len(trajectory),
            objects=self.object_model.object_count,
            occluded=self.occluder_depth is not None,
        )
        return dataset
