"""
Base classes for depth rendering.

Provides the abstract renderer capability used by the observation model to
produce the expected depth image of a state hypothesis.
"""

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray


class IRenderer(ABC):
    """
    Abstract base class for rigid-body depth renderers.

    Implementations must be safe to call concurrently from several threads:
    render() may only read the shared mesh and camera data.
    """

    @abstractmethod
    def render(self, poses: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Render expected depth images.

        Args:
            poses: Object poses, shape (object_count, 6), each
                [x, y, z, rx, ry, rz] in the world frame.

        Returns:
            Depth in meters, shape (sensors, H, W); np.inf where no
            surface is hit.
        """
        pass

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return backend name (cpu, gpu)."""
        pass

    @property
    @abstractmethod
    def sensors(self) -> int:
        """Number of sensors rendered."""
        pass

    @property
    @abstractmethod
    def pixel_count(self) -> int:
        """Total number of pixels over all sensors."""
        pass
