"""
Robust depth observation model.

Every valid pixel is explained by a two-component mixture:

    p(z | r) = (1 - tail_weight) * g(z | r) + tail_weight * U(z)

where g is a Gaussian around the rendered depth r (or around bg_depth where
no object surface is rendered) and U is uniform on
[uniform_tail_min, uniform_tail_max]. The uniform tail absorbs occlusions
and sensor outliers. Densities are combined in log space with logaddexp,
so underflow of either component is exact.
"""

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from yttrium.config.schema import ObservationConfig
from yttrium.errors import InvalidDimension
from yttrium.estimation.state import StateLayout
from yttrium.perception.camera import valid_depth_mask
from yttrium.perception.rendering.base import IRenderer

_LOG_SQRT_2PI = 0.5 * np.log(2.0 * np.pi)


@dataclass(frozen=True)
class ObservationParameters:
    """Immutable parameters of the robust pixel likelihood."""

    bg_depth: float
    fg_noise_std: float
    bg_noise_std: float
    tail_weight: float
    uniform_tail_min: float
    uniform_tail_max: float
    sensors: int = 1

    @classmethod
    def from_config(cls, config: ObservationConfig) -> "ObservationParameters":
        return cls(
            bg_depth=config.bg_depth,
            fg_noise_std=config.fg_noise_std,
            bg_noise_std=config.bg_noise_std,
            tail_weight=config.tail_weight,
            uniform_tail_min=config.uniform_tail_min,
            uniform_tail_max=config.uniform_tail_max,
            sensors=config.sensors,
        )


class RobustDepthObservationModel:
    """
    Log likelihood of a depth observation given the tracker state.

    Rendering goes through the injected renderer; everything else is
    immutable, so evaluations for different states may run concurrently.
    """

    def __init__(
        self,
        parameters: ObservationParameters,
        renderer: IRenderer,
        layout: StateLayout,
        workers: int = 1,
    ) -> None:
        """
        Initialize observation model.

        Args:
            parameters: Pixel likelihood parameters.
            renderer: Depth renderer for the tracked objects.
            layout: State layout used to extract object poses.
            workers: Threads used by log_likelihoods().
        """
        if parameters.sensors != renderer.sensors:
            raise InvalidDimension(
                f"parameters describe {parameters.sensors} sensor(s), "
                f"renderer has {renderer.sensors}"
            )
        self.parameters = parameters
        self.renderer = renderer
        self.layout = layout
        self.workers = max(1, int(workers))

        p = parameters
        with np.errstate(divide="ignore"):
            self._log_fg_weight = np.log1p(-p.tail_weight)
            self._log_tail_weight = np.log(p.tail_weight)
        self._log_uniform = -np.log(p.uniform_tail_max - p.uniform_tail_min)

    @property
    def observation_dimension(self) -> int:
        """Pixels per observation over all sensors."""
        return self.renderer.pixel_count

    def _log_mixture(
        self, measured: NDArray[np.float64], rendered: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        p = self.parameters
        surface = np.isfinite(rendered)
        mu = np.where(surface, rendered, p.bg_depth)
        sigma = np.where(surface, p.fg_noise_std, p.bg_noise_std)

        log_gauss = -0.5 * ((measured - mu) / sigma) ** 2 - np.log(sigma) - _LOG_SQRT_2PI
        inside = (measured >= p.uniform_tail_min) & (measured <= p.uniform_tail_max)
        log_tail = np.where(inside, self._log_uniform, -np.inf)

        return np.logaddexp(
            self._log_fg_weight + log_gauss, self._log_tail_weight + log_tail
        )

    def pixel_density(
        self, measured: NDArray[np.float64], rendered: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """
        Mixture density of measured depth values.

        Unlike pixel_log_densities() no validity mask is applied, so the
        density integrates to one over the real line.
        """
        measured = np.asarray(measured, dtype=np.float64)
        rendered = np.broadcast_to(np.asarray(rendered, dtype=np.float64), measured.shape)
        return np.exp(self._log_mixture(measured, rendered))

    def pixel_log_densities(
        self, rendered: NDArray[np.float64], measured: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """
        Per-pixel log densities.

        Args:
            rendered: Expected depth, inf where no surface.
            measured: Observed depth; invalid pixels contribute exactly 0.

        Returns:
            Flat array of log densities, one per pixel.
        """
        rendered = np.asarray(rendered, dtype=np.float64).reshape(-1)
        measured = np.asarray(measured, dtype=np.float64).reshape(-1)
        if rendered.shape != measured.shape:
            raise InvalidDimension(
                f"rendered ({rendered.size}) and measured ({measured.size}) "
                "pixel counts differ"
            )

        valid = valid_depth_mask(measured)
        log_densities = np.zeros(measured.shape)
        log_densities[valid] = self._log_mixture(measured[valid], rendered[valid])
        return log_densities

    def check_observation(self, observation: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return the observation as a flat vector, raising on a size mismatch."""
        observation = np.asarray(observation, dtype=np.float64).reshape(-1)
        if observation.shape[0] != self.observation_dimension:
            raise InvalidDimension(
                f"expected {self.observation_dimension} depth values "
                f"({self.parameters.sensors} sensor(s)), got {observation.shape[0]}"
            )
        return observation

    def log_likelihood(
        self, state: NDArray[np.float64], observation: NDArray[np.float64]
    ) -> float:
        """
        Log likelihood of an observation for one state.

        Args:
            state: Tracker state vector.
            observation: Depth observation, flat or (sensors, H, W).

        Returns:
            Sum of per-pixel log densities over all valid pixels.
        """
        observation = self.check_observation(observation)
        rendered = self.renderer.render(self.layout.poses(state))
        return float(np.sum(self.pixel_log_densities(rendered, observation)))

    def log_likelihoods(
        self,
        points: Sequence[NDArray[np.float64]],
        observation: NDArray[np.float64],
        executor: Optional[Executor] = None,
    ) -> NDArray[np.float64]:
        """
        Log likelihood of every quadrature point, in point order.

        Args:
            points: State vectors.
            observation: Depth observation.
            executor: Executor to use; a thread pool of ``workers`` threads
                is created for the call when omitted and workers > 1.

        Returns:
            Array of log likelihoods, shape (len(points),).
        """
        observation = self.check_observation(observation)

        def evaluate(state: NDArray[np.float64]) -> float:
            return self.log_likelihood(state, observation)

        if executor is not None:
            return np.array(list(executor.map(evaluate, points)))

        if self.workers > 1 and len(points) > 1:
            worker_count = min(self.workers, len(points))
            with ThreadPoolExecutor(max_workers=worker_count) as pool:
                return np.array(list(pool.map(evaluate, points)))

        return np.array([evaluate(state) for state in points])
