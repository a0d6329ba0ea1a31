"""Depth rendering backends for Yttrium."""

from typing import Sequence

from yttrium.errors import ConfigurationError
from yttrium.perception.calib import CameraData
from yttrium.perception.objects import ObjectModel
from yttrium.perception.rendering.base import IRenderer
from yttrium.perception.rendering.raycast import CpuRayCastRenderer, cast_depth, pixel_rays
from yttrium.perception.rendering.gpu_renderer import GpuRayCastRenderer


def create_renderer(
    backend: str,
    object_model: ObjectModel,
    cameras: Sequence[CameraData],
) -> IRenderer:
    """
    Create the renderer for a backend.

    Args:
        backend: Backend name ('cpu' or 'gpu').
        object_model: Meshes of the tracked objects.
        cameras: Camera data, one entry per sensor.

    Returns:
        Renderer instance.

    Raises:
        ConfigurationError: If the backend name is unknown.
        CapabilityUnavailable: If the GPU backend is requested but unsupported.
    """
    name = getattr(backend, "value", backend)
    if name == "cpu":
        return CpuRayCastRenderer(object_model, cameras)
    if name == "gpu":
        return GpuRayCastRenderer(object_model, cameras)
    raise ConfigurationError(f"Unknown render backend: {backend}")


__all__ = [
    "IRenderer",
    "CpuRayCastRenderer",
    "GpuRayCastRenderer",
    "cast_depth",
    "pixel_rays",
    "create_renderer",
]
