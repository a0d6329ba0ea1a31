"""
Robust Gaussian filter recursion.

Prediction propagates the belief jointly with standard-normal process noise
through the transition model using sigma-point quadrature. The update
evaluates the robust depth likelihood at the sigma points of the predicted
belief. Along every axis of the whitened point set, the log likelihoods of
the symmetric triple (center, +k, -k) at offsets (0, +s, -s) define the
parabola

    l(x) = l0 + g_k x - c_k x^2 / 2,
    g_k = (l+ - l-) / (2 s),    c_k = max(0, (2 l0 - l+ - l-) / s^2)

and the likelihood-weighted moments of the unit prior along that axis are

    v_k = 1 / (1 + c_k),    mu_k = clip(v_k g_k, +-max(s, 1)).

The likelihood-weighted statistics

    m_L = m + S mu,    P_L = S diag(v) S^T

are then blended with the prediction by update_rate. For a quadratic log
likelihood the moments are exact for any spread. A flat likelihood
reproduces the prediction exactly, and axes the camera cannot observe keep
their predicted variance.

Both operations are pure functions of immutable beliefs.
"""

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import InvalidDimension, NumericalDegeneracy
from yttrium.estimation.observation import RobustDepthObservationModel
from yttrium.estimation.quadrature import UnscentedQuadrature
from yttrium.estimation.transition import ObjectTransitionModel

_PSD_TOL = 1e-9


@dataclass(frozen=True)
class Belief:
    """
    Gaussian belief over the tracker state.

    The arrays are copied on construction and made read-only.

    Attributes:
        mean: State mean, shape (n,).
        covariance: State covariance, shape (n, n).
    """

    mean: NDArray[np.float64]
    covariance: NDArray[np.float64]

    def __post_init__(self) -> None:
        mean = np.array(self.mean, dtype=np.float64).reshape(-1)
        covariance = np.array(self.covariance, dtype=np.float64)
        if covariance.shape != (mean.size, mean.size):
            raise InvalidDimension(
                f"covariance shape {covariance.shape} does not match mean length "
                f"{mean.size}"
            )
        mean.setflags(write=False)
        covariance.setflags(write=False)
        object.__setattr__(self, "mean", mean)
        object.__setattr__(self, "covariance", covariance)

    @property
    def dimension(self) -> int:
        return self.mean.size

    @property
    def trace(self) -> float:
        """Trace of the covariance."""
        return float(np.trace(self.covariance))

    @property
    def std(self) -> NDArray[np.float64]:
        """Marginal standard deviations."""
        return np.sqrt(np.clip(np.diag(self.covariance), 0.0, None))


@dataclass(frozen=True)
class UpdateResult:
    """
    Outcome of one measurement update.

    Attributes:
        belief: Posterior belief.
        log_likelihoods: Per-point log likelihoods, or None when the update
            was skipped (update_rate == 0).
    """

    belief: Belief
    log_likelihoods: Optional[NDArray[np.float64]] = None

    @property
    def applied(self) -> bool:
        return self.log_likelihoods is not None


def checked_belief(
    mean: NDArray[np.float64], covariance: NDArray[np.float64], stage: str
) -> Belief:
    """
    Symmetrize and validate filter output.

    Raises:
        NumericalDegeneracy: If the moments are non-finite or the covariance
            is not positive semi-definite within tolerance.
    """
    if not (np.all(np.isfinite(mean)) and np.all(np.isfinite(covariance))):
        raise NumericalDegeneracy(f"{stage} produced non-finite moments")

    covariance = 0.5 * (covariance + covariance.T)
    if covariance.size:
        min_eigenvalue = float(np.linalg.eigvalsh(covariance).min())
        scale = max(1.0, float(np.max(np.abs(covariance))))
        if min_eigenvalue < -_PSD_TOL * scale:
            raise NumericalDegeneracy(
                f"{stage} produced a covariance that is not positive "
                f"semi-definite (min eigenvalue {min_eigenvalue:.3e})"
            )
    return Belief(mean=mean, covariance=covariance)


def axis_moments(
    log_likelihoods: NDArray[np.float64], dimension: int, spread: float
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Whitened mean shift and variance per axis.

    Args:
        log_likelihoods: Log likelihoods of the 2d + 1 points, ordered
            center, positive axes, negative axes.
        dimension: Number of axes d.
        spread: Axis point distance s in whitened units.

    Returns:
        Tuple (mu, v), each of length d.
    """
    center = log_likelihoods[0]
    plus = log_likelihoods[1 : dimension + 1]
    minus = log_likelihoods[dimension + 1 :]

    slope = (plus - minus) / (2.0 * spread)
    curvature = np.maximum((2.0 * center - plus - minus) / spread**2, 0.0)

    variance = 1.0 / (1.0 + curvature)
    limit = max(spread, 1.0)
    shift = np.clip(variance * slope, -limit, limit)
    return shift, variance


class RobustGaussianFilter:
    """
    Sigma-point Gaussian filter with a robust pixel likelihood.

    The filter holds only immutable models; the current belief is owned by
    the caller (see ObjectTracker).
    """

    def __init__(
        self,
        transition: ObjectTransitionModel,
        observation: RobustDepthObservationModel,
        quadrature: UnscentedQuadrature,
        update_rate: float = 1.0,
    ) -> None:
        if not 0.0 <= update_rate <= 1.0:
            raise ValueError(f"update_rate must be within [0, 1], got {update_rate}")
        self.transition = transition
        self.observation = observation
        self.quadrature = quadrature
        self.update_rate = float(update_rate)

    def predict(
        self, belief: Belief, input: Optional[NDArray[np.float64]] = None
    ) -> Belief:
        """
        Propagate the belief through the process model.

        Args:
            belief: Current belief.
            input: Optional velocity input (zero if omitted).

        Returns:
            Predicted belief.
        """
        if belief.dimension != self.transition.state_dimension:
            raise InvalidDimension(
                f"belief has dimension {belief.dimension}, "
                f"filter expects {self.transition.state_dimension}"
            )

        def propagate(
            state: NDArray[np.float64], noise: NDArray[np.float64]
        ) -> NDArray[np.float64]:
            return self.transition.predict(state, input, noise)

        result = self.quadrature.transform_augmented(
            propagate,
            belief.mean,
            belief.covariance,
            self.transition.noise_dimension,
        )
        return checked_belief(result.mean, result.covariance, "predict")

    def correct(
        self,
        belief: Belief,
        observation: NDArray[np.float64],
        executor: Optional[Executor] = None,
    ) -> UpdateResult:
        """
        Measurement update returning the per-point log likelihoods as well.

        Args:
            belief: Predicted belief.
            observation: Depth observation, flat or (sensors, H, W).
            executor: Optional executor for the likelihood evaluations.

        Returns:
            UpdateResult with the posterior belief.
        """
        if self.update_rate == 0.0:
            return UpdateResult(belief=belief)

        observation = self.observation.check_observation(observation)
        point_set = self.quadrature.points(belief.mean, belief.covariance)
        log_likelihoods = self.observation.log_likelihoods(
            point_set.points, observation, executor
        )
        if not np.all(np.isfinite(log_likelihoods)):
            raise NumericalDegeneracy("likelihood evaluation returned a non-finite value")

        shift, variance = axis_moments(
            log_likelihoods, point_set.dimension, point_set.spread
        )

        S = point_set.sqrt_factor
        likelihood_mean = belief.mean + S @ shift
        likelihood_covariance = (S * variance) @ S.T

        r = self.update_rate
        mean = belief.mean + r * (likelihood_mean - belief.mean)
        covariance = (1.0 - r) * belief.covariance + r * likelihood_covariance

        return UpdateResult(
            belief=checked_belief(mean, covariance, "update"),
            log_likelihoods=log_likelihoods,
        )

    def update(self, belief: Belief, observation: NDArray[np.float64]) -> Belief:
        """Measurement update; returns the posterior belief."""
        return self.correct(belief, observation).belief

    def step(
        self,
        belief: Belief,
        observation: NDArray[np.float64],
        input: Optional[NDArray[np.float64]] = None,
    ) -> Belief:
        """Predict followed by update."""
        return self.update(self.predict(belief, input), observation)
