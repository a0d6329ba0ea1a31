"""
Rigid object state transition model.

Damped-velocity dynamics per object:

    v' = velocity_factor * v + u + sigma * w
    pose' = pose + dt * v'

with latent parameters following a random walk. Object blocks never read
each other, so objects move independently.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import InvalidDimension
from yttrium.estimation.state import OBJECT_BLOCK, POSE_DIM, StateLayout


@dataclass(frozen=True)
class ObjectMotionParameters:
    """
    Motion noise of one object.

    Attributes:
        linear_sigma: Std-dev of the linear velocity noise per step.
        angular_sigma: Std-dev of the angular velocity noise per step.
        velocity_factor: Velocity persistence in [0, 1].
    """

    linear_sigma: float
    angular_sigma: float
    velocity_factor: float

    @property
    def sigma(self) -> NDArray[np.float64]:
        """Per-component velocity noise std-dev, shape (6,)."""
        return np.concatenate(
            [np.full(3, self.linear_sigma), np.full(3, self.angular_sigma)]
        )


class ObjectTransitionModel:
    """
    Process model over the tracker state.

    The model holds only immutable parameters; predict() is a pure function.
    """

    def __init__(
        self,
        layout: StateLayout,
        object_parameters: Sequence[ObjectMotionParameters],
        latent_sigma: float = 0.0,
        dt: float = 1.0,
    ) -> None:
        """
        Initialize transition model.

        Args:
            layout: State layout.
            object_parameters: Motion parameters, one entry per object.
            latent_sigma: Random-walk std-dev of the latent parameters.
            dt: Time step in seconds.
        """
        if len(object_parameters) != layout.object_count:
            raise InvalidDimension(
                f"expected {layout.object_count} motion parameter set(s), "
                f"got {len(object_parameters)}"
            )
        self.layout = layout
        self.object_parameters = tuple(object_parameters)
        self.latent_sigma = float(latent_sigma)
        self.dt = float(dt)

        self._velocity_factor = np.array(
            [p.velocity_factor for p in self.object_parameters]
        )[:, None]
        self._sigma = np.stack([p.sigma for p in self.object_parameters])

    @property
    def state_dimension(self) -> int:
        return self.layout.n_state

    @property
    def noise_dimension(self) -> int:
        return self.layout.noise_dimension

    @property
    def input_dimension(self) -> int:
        return self.layout.input_dimension

    def predict(
        self,
        state: NDArray[np.float64],
        input: Optional[NDArray[np.float64]] = None,
        noise: Optional[NDArray[np.float64]] = None,
    ) -> NDArray[np.float64]:
        """
        Propagate one state by one time step.

        Args:
            state: State vector, shape (n_state,).
            input: Velocity input, shape (6 * object_count,); zero if omitted.
            noise: Standard-normal noise, shape (noise_dimension,); zero if omitted.

        Returns:
            Next state vector (a new array).

        Raises:
            InvalidDimension: If any vector has the wrong size.
        """
        state = self.layout.check(state)
        count = self.layout.object_count
        input = self._vector(input, self.input_dimension, "input")
        noise = self._vector(noise, self.noise_dimension, "noise")

        blocks = state[: OBJECT_BLOCK * count].reshape(count, OBJECT_BLOCK)
        pose = blocks[:, :POSE_DIM]
        velocity = blocks[:, POSE_DIM:]

        object_noise = noise[: POSE_DIM * count].reshape(count, POSE_DIM)
        velocity_next = (
            self._velocity_factor * velocity
            + input.reshape(count, POSE_DIM)
            + self._sigma * object_noise
        )
        pose_next = pose + self.dt * velocity_next

        latents = state[self.layout.latent_slice]
        latents_next = latents + self.latent_sigma * noise[POSE_DIM * count :]

        return np.concatenate(
            [np.concatenate([pose_next, velocity_next], axis=1).reshape(-1), latents_next]
        )

    @staticmethod
    def _vector(
        value: Optional[NDArray[np.float64]], size: int, name: str
    ) -> NDArray[np.float64]:
        if value is None:
            return np.zeros(size)
        value = np.asarray(value, dtype=np.float64).reshape(-1)
        if value.shape[0] != size:
            raise InvalidDimension(
                f"expected {name} of length {size}, got {value.shape[0]}"
            )
        return value
