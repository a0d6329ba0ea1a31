"""
GPU ray-casting depth renderer for Yttrium.

Runs the shared ray-triangle kernel on CUDA through CuPy. Availability is
checked when the renderer is constructed, never during render().
"""

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import CapabilityUnavailable
from yttrium.perception.calib import CameraData
from yttrium.perception.objects import ObjectModel
from yttrium.perception.rendering.raycast import CpuRayCastRenderer


def _load_cupy() -> Any:
    """Import CuPy and make sure a CUDA device is present."""
    try:
        import cupy as cp
    except ImportError as e:
        raise CapabilityUnavailable(
            "GPU rendering requires cupy (pip install yttrium[gpu])"
        ) from e

    try:
        device_count = cp.cuda.runtime.getDeviceCount()
    except cp.cuda.runtime.CUDARuntimeError as e:
        raise CapabilityUnavailable(f"CUDA runtime unavailable: {e}") from e

    if device_count < 1:
        raise CapabilityUnavailable("No CUDA device found")

    return cp


class GpuRayCastRenderer(CpuRayCastRenderer):
    """
    CuPy ray-casting renderer.

    Pixel rays stay resident on the device; triangles are uploaded per call
    and depth images are copied back to host memory.
    """

    def __init__(
        self,
        object_model: ObjectModel,
        cameras: Sequence[CameraData],
        chunk_size: int = 1024,
    ) -> None:
        """
        Initialize GPU renderer.

        Args:
            object_model: Meshes of the tracked objects.
            cameras: Camera data, one entry per sensor.
            chunk_size: Triangles per kernel batch.

        Raises:
            CapabilityUnavailable: If CuPy or a CUDA device is missing.
        """
        self._cp = _load_cupy()
        self.xp = self._cp
        super().__init__(object_model, cameras, chunk_size)

    def _to_device(self, array: NDArray[np.float64]) -> Any:
        return self._cp.asarray(array)

    def _to_host(self, array: Any) -> NDArray[np.float64]:
        return self._cp.asnumpy(array)

    @property
    def backend_name(self) -> str:
        """Return backend name."""
        return "gpu"
