"""
State vector layout for rigid object tracking.

Each object owns a 12-dimensional block
[position(3), rotation vector(3), linear velocity(3), angular velocity(3)];
shared latent parameters follow the object blocks.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import InvalidDimension

OBJECT_BLOCK = 12
POSE_DIM = 6


@dataclass(frozen=True)
class StateLayout:
    """Index bookkeeping for the flat state vector."""

    object_count: int
    latent_dimension: int = 0

    def __post_init__(self) -> None:
        if self.object_count < 1:
            raise InvalidDimension("at least one object is required")
        if self.latent_dimension < 0:
            raise InvalidDimension("latent_dimension must be non-negative")

    @property
    def n_state(self) -> int:
        """Length of the state vector."""
        return OBJECT_BLOCK * self.object_count + self.latent_dimension

    @property
    def noise_dimension(self) -> int:
        """Length of the standard-normal process noise vector."""
        return POSE_DIM * self.object_count + self.latent_dimension

    @property
    def input_dimension(self) -> int:
        """Length of the velocity input vector."""
        return POSE_DIM * self.object_count

    def pose_slice(self, index: int) -> slice:
        """Slice of object ``index``'s pose within the state."""
        start = OBJECT_BLOCK * index
        return slice(start, start + POSE_DIM)

    def velocity_slice(self, index: int) -> slice:
        """Slice of object ``index``'s velocity within the state."""
        start = OBJECT_BLOCK * index + POSE_DIM
        return slice(start, start + POSE_DIM)

    @property
    def latent_slice(self) -> slice:
        start = OBJECT_BLOCK * self.object_count
        return slice(start, start + self.latent_dimension)

    def check(self, state: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return ``state`` as a float vector, raising on a size mismatch."""
        state = np.asarray(state, dtype=np.float64)
        if state.shape != (self.n_state,):
            raise InvalidDimension(
                f"expected state of length {self.n_state}, got shape {state.shape}"
            )
        return state

    def poses(self, state: NDArray[np.float64]) -> NDArray[np.float64]:
        """Object poses of ``state``, shape (object_count, 6)."""
        state = self.check(state)
        blocks = state[: OBJECT_BLOCK * self.object_count]
        return blocks.reshape(self.object_count, OBJECT_BLOCK)[:, :POSE_DIM].copy()

    def velocities(self, state: NDArray[np.float64]) -> NDArray[np.float64]:
        """Object velocities of ``state``, shape (object_count, 6)."""
        state = self.check(state)
        blocks = state[: OBJECT_BLOCK * self.object_count]
        return blocks.reshape(self.object_count, OBJECT_BLOCK)[:, POSE_DIM:].copy()

    def compose(
        self,
        poses: NDArray[np.float64],
        velocities: Optional[NDArray[np.float64]] = None,
        latents: Optional[NDArray[np.float64]] = None,
    ) -> NDArray[np.float64]:
        """
        Assemble a state vector.

        Args:
            poses: Object poses, shape (object_count, 6).
            velocities: Object velocities, same shape (zero if omitted).
            latents: Latent parameters (zero if omitted).

        Returns:
            State vector of length n_state.
        """
        shape = (self.object_count, POSE_DIM)
        poses = np.asarray(poses, dtype=np.float64).reshape(-1)
        if poses.size != self.object_count * POSE_DIM:
            raise InvalidDimension(f"expected poses of shape {shape}")
        velocities = (
            np.zeros(shape)
            if velocities is None
            else np.asarray(velocities, dtype=np.float64)
        )
        if velocities.size != self.object_count * POSE_DIM:
            raise InvalidDimension(f"expected velocities of shape {shape}")
        latents = (
            np.zeros(self.latent_dimension)
            if latents is None
            else np.asarray(latents, dtype=np.float64).reshape(-1)
        )
        if latents.size != self.latent_dimension:
            raise InvalidDimension(
                f"expected {self.latent_dimension} latent value(s), got {latents.size}"
            )

        blocks = np.concatenate(
            [poses.reshape(shape), velocities.reshape(shape)], axis=1
        )
        return np.concatenate([blocks.reshape(-1), latents])
