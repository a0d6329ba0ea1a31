"""Estimation module: quadrature, process and observation models, filter."""

from yttrium.estimation.state import StateLayout
from yttrium.estimation.quadrature import (
    QuadraturePointSet,
    TransformResult,
    UnscentedQuadrature,
    matrix_sqrt,
)
from yttrium.estimation.transition import ObjectMotionParameters, ObjectTransitionModel
from yttrium.estimation.observation import (
    ObservationParameters,
    RobustDepthObservationModel,
)
from yttrium.estimation.gaussian_filter import (
    Belief,
    RobustGaussianFilter,
    UpdateResult,
)
from yttrium.estimation.tracker import ObjectTracker
from yttrium.estimation.builder import build

__all__ = [
    "StateLayout",
    "QuadraturePointSet",
    "TransformResult",
    "UnscentedQuadrature",
    "matrix_sqrt",
    "ObjectMotionParameters",
    "ObjectTransitionModel",
    "ObservationParameters",
    "RobustDepthObservationModel",
    "Belief",
    "RobustGaussianFilter",
    "UpdateResult",
    "ObjectTracker",
    "build",
]
