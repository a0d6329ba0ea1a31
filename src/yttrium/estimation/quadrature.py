"""
Unscented quadrature for Gaussian filtering.

Implements the scaled unscented transform: 2d + 1 deterministic sigma points
that exactly integrate polynomials up to third order against a Gaussian.
The rule depends only on the dimension and the spread parameter alpha;
beta = 2 and kappa = 0 are fixed.

Example:
    >>> rule = UnscentedQuadrature(alpha=1.0)
    >>> result = rule.transform(lambda x: A @ x, mean, covariance)
    >>> result.covariance  # == A @ covariance @ A.T
"""

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import InvalidDimension

UT_BETA = 2.0
UT_KAPPA = 0.0

_SYMMETRY_TOL = 1e-9
_PSD_TOL = 1e-9


def matrix_sqrt(covariance: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Square-root factor S with S @ S.T == covariance.

    Uses the Cholesky factor and falls back to an eigen-decomposition for
    singular (positive semi-definite) matrices.

    Args:
        covariance: Symmetric PSD matrix, shape (d, d).

    Returns:
        Factor S, shape (d, d).

    Raises:
        InvalidDimension: If the matrix is not square, not symmetric or not
            PSD within tolerance.
    """
    covariance = np.asarray(covariance, dtype=np.float64)
    if covariance.ndim != 2 or covariance.shape[0] != covariance.shape[1]:
        raise InvalidDimension(f"covariance must be square, got {covariance.shape}")
    if covariance.size == 0:
        return covariance.copy()
    if not np.all(np.isfinite(covariance)):
        raise InvalidDimension("covariance contains non-finite entries")

    scale = max(1.0, float(np.max(np.abs(covariance))))
    if np.max(np.abs(covariance - covariance.T)) > _SYMMETRY_TOL * scale:
        raise InvalidDimension("covariance is not symmetric")

    try:
        return np.linalg.cholesky(covariance)
    except np.linalg.LinAlgError:
        pass

    eigenvalues, eigenvectors = np.linalg.eigh(0.5 * (covariance + covariance.T))
    if eigenvalues.min() < -_PSD_TOL * scale:
        raise InvalidDimension(
            f"covariance is not positive semi-definite (min eigenvalue "
            f"{eigenvalues.min():.3e})"
        )
    return eigenvectors * np.sqrt(np.clip(eigenvalues, 0.0, None))


@dataclass(frozen=True)
class QuadraturePointSet:
    """
    Sigma points of one Gaussian.

    Attributes:
        points: Points, shape (2d + 1, d). Row 0 is the mean, rows 1..d the
            positive and rows d+1..2d the negative axis points.
        mean_weights: Weights for the mean, shape (2d + 1,).
        covariance_weights: Weights for second moments, shape (2d + 1,).
        sqrt_factor: Square-root factor S of the covariance.
        spread: Axis scaling s, so that point k = mean + s * S[:, k].
    """

    points: NDArray[np.float64]
    mean_weights: NDArray[np.float64]
    covariance_weights: NDArray[np.float64]
    sqrt_factor: NDArray[np.float64]
    spread: float

    @property
    def count(self) -> int:
        """Number of points."""
        return self.points.shape[0]

    @property
    def dimension(self) -> int:
        """Dimension of the integrated Gaussian."""
        return self.points.shape[1]

    @property
    def mean(self) -> NDArray[np.float64]:
        """Center point."""
        return self.points[0]


@dataclass(frozen=True)
class TransformResult:
    """Gaussian moments of a transformed random vector."""

    mean: NDArray[np.float64]
    covariance: NDArray[np.float64]
    outputs: NDArray[np.float64]
    cross_covariance: Optional[NDArray[np.float64]] = None


class UnscentedQuadrature:
    """
    Scaled unscented transform quadrature rule.

    Stateless apart from alpha; safe to share between threads.
    """

    def __init__(self, alpha: float = 1.0) -> None:
        if not alpha > 0:
            raise ValueError(f"alpha must be positive, got {alpha}")
        self.alpha = float(alpha)
        self.beta = UT_BETA
        self.kappa = UT_KAPPA

    def __repr__(self) -> str:
        return f"UnscentedQuadrature(alpha={self.alpha})"

    def lambda_(self, dimension: int) -> float:
        return self.alpha**2 * (dimension + self.kappa) - dimension

    def spread(self, dimension: int) -> float:
        """Distance of the axis points in units of the square-root factor."""
        return float(np.sqrt(dimension + self.lambda_(dimension)))

    def point_count(self, dimension: int) -> int:
        return 2 * dimension + 1

    def weights(
        self, dimension: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """
        Mean and covariance weights for a given dimension.

        Args:
            dimension: Gaussian dimension d >= 0.

        Returns:
            Tuple (mean_weights, covariance_weights), each of length 2d + 1.
        """
        if dimension < 0:
            raise InvalidDimension(f"dimension must be non-negative, got {dimension}")
        if dimension == 0:
            return np.ones(1), np.ones(1)

        lam = self.lambda_(dimension)
        c = dimension + lam

        mean_weights = np.full(2 * dimension + 1, 1.0 / (2.0 * c))
        mean_weights[0] = lam / c
        covariance_weights = mean_weights.copy()
        covariance_weights[0] += 1.0 - self.alpha**2 + self.beta
        return mean_weights, covariance_weights

    def points(
        self, mean: NDArray[np.float64], covariance: NDArray[np.float64]
    ) -> QuadraturePointSet:
        """
        Sigma points of N(mean, covariance).

        Raises:
            InvalidDimension: If mean and covariance shapes disagree or the
                covariance is not a valid covariance matrix.
        """
        mean = np.asarray(mean, dtype=np.float64).reshape(-1)
        covariance = np.asarray(covariance, dtype=np.float64)
        d = mean.shape[0]
        if covariance.shape != (d, d):
            raise InvalidDimension(
                f"covariance shape {covariance.shape} does not match mean length {d}"
            )

        S = matrix_sqrt(covariance)
        s = self.spread(d)
        offsets = s * S.T
        points = np.concatenate([mean[None, :], mean + offsets, mean - offsets], axis=0)
        mean_weights, covariance_weights = self.weights(d)

        return QuadraturePointSet(
            points=points,
            mean_weights=mean_weights,
            covariance_weights=covariance_weights,
            sqrt_factor=S,
            spread=s,
        )

    def transform(
        self,
        f: Callable[[NDArray[np.float64]], NDArray[np.float64]],
        mean: NDArray[np.float64],
        covariance: NDArray[np.float64],
        cross_covariance: bool = False,
        executor: Optional[Executor] = None,
    ) -> TransformResult:
        """
        Propagate N(mean, covariance) through f.

        Args:
            f: Function applied to every point.
            mean: Input mean, shape (d,).
            covariance: Input covariance, shape (d, d).
            cross_covariance: Also compute the input-output cross covariance.
            executor: Optional executor evaluating points concurrently.

        Returns:
            Output moments. Reduction always runs in point order.
        """
        point_set = self.points(mean, covariance)
        outputs = self.evaluate(f, point_set.points, executor)
        return self._reduce(point_set, outputs, cross_covariance)

    def transform_augmented(
        self,
        f: Callable[[NDArray[np.float64], NDArray[np.float64]], NDArray[np.float64]],
        mean: NDArray[np.float64],
        covariance: NDArray[np.float64],
        noise_dimension: int,
        cross_covariance: bool = False,
        executor: Optional[Executor] = None,
    ) -> TransformResult:
        """
        Propagate N(mean, covariance) x N(0, I) through f(state, noise).

        The returned cross covariance (if requested) relates the state part
        of the input to the output.
        """
        mean = np.asarray(mean, dtype=np.float64).reshape(-1)
        n = mean.shape[0]
        covariance = np.asarray(covariance, dtype=np.float64)
        if covariance.shape != (n, n):
            raise InvalidDimension(
                f"covariance shape {covariance.shape} does not match mean length {n}"
            )
        if noise_dimension < 0:
            raise InvalidDimension("noise_dimension must be non-negative")

        joint_mean = np.concatenate([mean, np.zeros(noise_dimension)])
        joint_covariance = np.zeros((n + noise_dimension, n + noise_dimension))
        joint_covariance[:n, :n] = covariance
        joint_covariance[n:, n:] = np.eye(noise_dimension)

        def joint(z: NDArray[np.float64]) -> NDArray[np.float64]:
            return f(z[:n], z[n:])

        result = self.transform(
            joint, joint_mean, joint_covariance, cross_covariance, executor
        )
        if result.cross_covariance is None:
            return result
        return TransformResult(
            mean=result.mean,
            covariance=result.covariance,
            outputs=result.outputs,
            cross_covariance=result.cross_covariance[:n],
        )

    @staticmethod
    def evaluate(
        f: Callable[[NDArray[np.float64]], object],
        points: Sequence[NDArray[np.float64]],
        executor: Optional[Executor] = None,
    ) -> list:
        """Apply f to every point, preserving point order."""
        if executor is None:
            return [f(point) for point in points]
        return list(executor.map(f, points))

    def _reduce(
        self,
        point_set: QuadraturePointSet,
        outputs: Sequence[NDArray[np.float64]],
        cross_covariance: bool,
    ) -> TransformResult:
        rows = [np.atleast_1d(np.asarray(y, dtype=np.float64)).reshape(-1) for y in outputs]
        sizes = {row.shape[0] for row in rows}
        if len(sizes) != 1:
            raise InvalidDimension(
                f"transform returned vectors of inconsistent size: {sorted(sizes)}"
            )
        Y = np.stack(rows)

        y_mean = point_set.mean_weights @ Y
        dY = Y - y_mean
        P = (point_set.covariance_weights * dY.T) @ dY
        P = 0.5 * (P + P.T)

        C = None
        if cross_covariance:
            dX = point_set.points - point_set.mean
            C = (point_set.covariance_weights * dX.T) @ dY

        return TransformResult(mean=y_mean, covariance=P, outputs=Y, cross_covariance=C)
