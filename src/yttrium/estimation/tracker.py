"""
Object tracker owning the persistent belief.

The tracker serializes filter cycles: a new belief is committed only after
predict and update both succeed, so a failing cycle leaves the previous
belief in place.
"""

import threading
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from yttrium.config.schema import InitialBeliefConfig
from yttrium.errors import InvalidDimension
from yttrium.estimation.gaussian_filter import Belief, RobustGaussianFilter
from yttrium.estimation.state import POSE_DIM, StateLayout
from yttrium.logging.setup import get_logger
from yttrium.logging.telemetry import CycleTelemetry, TelemetryCollector
from yttrium.utils.time import Timer

logger = get_logger(__name__)


class ObjectTracker:
    """
    Tracks rigid object poses from depth observations.

    Example:
        tracker = build(config.tracker, camera_data, object_model)
        tracker.initialize(initial_poses)
        for frame in frames:
            belief = tracker.step(frame.to_observation())
    """

    def __init__(
        self,
        gaussian_filter: RobustGaussianFilter,
        layout: StateLayout,
        initial: Optional[InitialBeliefConfig] = None,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        """
        Initialize tracker.

        Args:
            gaussian_filter: Filter performing predict and update.
            layout: State layout.
            initial: Standard deviations of the initial belief.
            telemetry: Collector receiving per-cycle metrics.
        """
        self._filter = gaussian_filter
        self._layout = layout
        self._initial = initial or InitialBeliefConfig()
        self.telemetry = telemetry or TelemetryCollector()

        self._lock = threading.Lock()
        self._belief: Optional[Belief] = None
        self._cycle = 0

    @property
    def layout(self) -> StateLayout:
        return self._layout

    @property
    def gaussian_filter(self) -> RobustGaussianFilter:
        return self._filter

    @property
    def is_initialized(self) -> bool:
        return self._belief is not None

    @property
    def cycle(self) -> int:
        """Number of completed cycles since the last initialization."""
        return self._cycle

    @property
    def belief(self) -> Optional[Belief]:
        """Current belief snapshot (None before initialization)."""
        return self._belief

    @property
    def poses(self) -> NDArray[np.float64]:
        """Current pose estimates, shape (object_count, 6)."""
        belief = self._belief
        if belief is None:
            raise RuntimeError("tracker is not initialized")
        return self._layout.poses(belief.mean)

    def initial_covariance(self) -> NDArray[np.float64]:
        """Diagonal initial covariance from the configured std-devs."""
        init = self._initial
        block = np.concatenate(
            [
                np.full(3, init.linear_std**2),
                np.full(3, init.angular_std**2),
                np.full(POSE_DIM, init.velocity_std**2),
            ]
        )
        diagonal = np.concatenate(
            [
                np.tile(block, self._layout.object_count),
                np.full(self._layout.latent_dimension, init.latent_std**2),
            ]
        )
        return np.diag(diagonal)

    def initialize(
        self,
        poses: NDArray[np.float64],
        velocities: Optional[NDArray[np.float64]] = None,
        latents: Optional[NDArray[np.float64]] = None,
    ) -> Belief:
        """
        Set the belief around initial object poses.

        Args:
            poses: Initial poses, shape (object_count, 6).
            velocities: Initial velocities, same shape (zero if omitted).
            latents: Initial latent parameters (zero if omitted).

        Returns:
            The initial belief.
        """
        mean = self._layout.compose(poses, velocities, latents)
        belief = Belief(mean=mean, covariance=self.initial_covariance())
        self.reset(belief)
        return belief

    def reset(self, belief: Belief) -> None:
        """Replace the belief and restart cycle counting."""
        if belief.dimension != self._layout.n_state:
            raise InvalidDimension(
                f"belief has dimension {belief.dimension}, "
                f"tracker state has {self._layout.n_state}"
            )
        with self._lock:
            self._belief = belief
            self._cycle = 0
        logger.info(
            "tracker_initialized",
            n_state=belief.dimension,
            covariance_trace=belief.trace,
        )

    def step(
        self,
        observation: NDArray[np.float64],
        input: Optional[NDArray[np.float64]] = None,
    ) -> Belief:
        """
        Run one predict/update cycle.

        Args:
            observation: Depth observation, flat or (sensors, H, W).
            input: Optional velocity input.

        Returns:
            The committed posterior belief.

        Raises:
            RuntimeError: If the tracker has not been initialized.
            NumericalDegeneracy: If the cycle degenerates; the previous
                belief is kept.
        """
        with self._lock:
            if self._belief is None:
                raise RuntimeError("tracker is not initialized")

            with Timer() as timer:
                try:
                    predicted = self._filter.predict(self._belief, input)
                    result = self._filter.correct(predicted, observation)
                except Exception as e:
                    self.telemetry.record_failure()
                    logger.warning(
                        "cycle_failed",
                        cycle=self._cycle + 1,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    raise

            self._belief = result.belief
            self._cycle += 1

            ll = result.log_likelihoods
            data = CycleTelemetry(
                cycle=self._cycle,
                latency_ms=timer.elapsed_ms,
                covariance_trace=result.belief.trace,
                log_likelihood_max=float(ll.max()) if ll is not None else None,
                log_likelihood_spread=float(ll.max() - ll.min()) if ll is not None else None,
                update_applied=result.applied,
            )
            self.telemetry.record(data)
            logger.debug("cycle_completed", **data.to_dict())

            return result.belief
