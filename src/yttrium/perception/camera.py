"""
Depth frame abstraction for Yttrium.

Provides the depth frame container and the conversion of multi-sensor frames
into the flat observation vector consumed by the observation model.
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import InvalidDimension


@dataclass
class DepthFrame:
    """
    Single depth frame with metadata.

    Attributes:
        depth_m: Depth images in meters, shape (S, H, W) for S sensors.
            Non-finite or non-positive values mark missing depth.
        timestamp_s: Timestamp in seconds.
        frame_id: Sequential frame identifier.
        meta: Additional metadata dictionary.
    """

    depth_m: NDArray[np.float64]
    timestamp_s: float
    frame_id: int
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Promote single-sensor images to (1, H, W)."""
        depth = np.asarray(self.depth_m, dtype=np.float64)
        if depth.ndim == 2:
            depth = depth[np.newaxis]
        if depth.ndim != 3:
            raise InvalidDimension(
                f"depth frame must be (H, W) or (S, H, W), got shape {depth.shape}"
            )
        self.depth_m = depth

    @property
    def sensors(self) -> int:
        """Number of sensor streams."""
        return self.depth_m.shape[0]

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self.depth_m.shape[1]

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self.depth_m.shape[2]

    @property
    def valid_mask(self) -> NDArray[np.bool_]:
        """Mask of pixels carrying a depth measurement."""
        return valid_depth_mask(self.depth_m)

    def downsampled(self, factor: int) -> "DepthFrame":
        """
        Subsample every factor-th pixel.

        Args:
            factor: Integer downsampling factor.

        Returns:
            New DepthFrame at reduced resolution.
        """
        if factor == 1:
            return self
        h = (self.height // factor) * factor
        w = (self.width // factor) * factor
        return DepthFrame(
            depth_m=self.depth_m[:, :h:factor, :w:factor].copy(),
            timestamp_s=self.timestamp_s,
            frame_id=self.frame_id,
            meta=dict(self.meta),
        )

    def to_observation(self) -> NDArray[np.float64]:
        """Flatten to an observation vector (sensor-major, row-major pixels)."""
        return self.depth_m.reshape(-1)


def valid_depth_mask(depth: NDArray[np.float64]) -> NDArray[np.bool_]:
    """
    Mask of valid depth measurements.

    Missing depth is encoded as NaN, +/-inf or a non-positive value.

    Args:
        depth: Depth values in meters (any shape).

    Returns:
        Boolean mask of the same shape.
    """
    depth = np.asarray(depth)
    with np.errstate(invalid="ignore"):
        return np.isfinite(depth) & (depth > 0.0)


def stack_observation(
    images: Sequence[NDArray[np.float64]],
) -> NDArray[np.float64]:
    """
    Build one observation vector from per-sensor depth images.

    Args:
        images: One (H, W) depth image per sensor.

    Returns:
        Flat observation vector of length sum(H * W).
    """
    return np.concatenate(
        [np.asarray(image, dtype=np.float64).reshape(-1) for image in images]
    )
