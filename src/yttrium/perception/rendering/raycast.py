"""
Ray-casting depth renderer for Yttrium.

Renders z-depth images of triangle meshes by intersecting one ray per pixel
with every triangle (Moller-Trumbore). The intersection kernel is written
against an array module so the CPU (NumPy) and GPU (CuPy) renderers share
the same arithmetic.
"""

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import InvalidDimension
from yttrium.perception.calib import CameraData, CameraIntrinsics
from yttrium.perception.objects import ObjectModel
from yttrium.perception.rendering.base import IRenderer
from yttrium.utils.math3d import rotation_vector_to_matrix

_DET_EPSILON = 1e-12
_NEAR_PLANE_M = 1e-6


def pixel_rays(intrinsics: CameraIntrinsics) -> NDArray[np.float64]:
    """
    Back-project every pixel to a ray with unit z component.

    Args:
        intrinsics: Camera intrinsics at working resolution.

    Returns:
        Ray directions in camera frame, shape (H * W, 3), row-major pixels.
    """
    u, v = np.meshgrid(
        np.arange(intrinsics.width, dtype=np.float64),
        np.arange(intrinsics.height, dtype=np.float64),
    )
    x = (u - intrinsics.cx) / intrinsics.fx
    y = (v - intrinsics.cy) / intrinsics.fy
    return np.stack([x.ravel(), y.ravel(), np.ones(u.size)], axis=1)


def cast_depth(
    xp: Any,
    rays: Any,
    triangles: Any,
    chunk_size: int = 256,
) -> Any:
    """
    Nearest intersection depth of camera-origin rays with triangles.

    Since every ray has unit z component, the ray parameter of a hit equals
    its z-depth.

    Args:
        xp: Array module (numpy or cupy).
        rays: Ray directions, shape (N, 3).
        triangles: Triangles in camera frame, shape (M, 3, 3).
        chunk_size: Triangles processed per vectorized batch.

    Returns:
        Depth per ray, shape (N,); inf where nothing is hit.
    """
    depth = xp.full(rays.shape[0], xp.inf, dtype=xp.float64)

    for start in range(0, triangles.shape[0], chunk_size):
        tri = triangles[start : start + chunk_size]
        v0 = tri[:, 0]
        e1 = tri[:, 1] - v0
        e2 = tri[:, 2] - v0

        p = xp.cross(rays[:, None, :], e2[None, :, :])
        det = xp.sum(p * e1[None, :, :], axis=-1)
        valid = xp.abs(det) > _DET_EPSILON
        inv_det = xp.where(valid, 1.0 / xp.where(valid, det, 1.0), 0.0)

        # Ray origin is the camera center, so T = -v0
        s = -v0
        u = xp.sum(p * s[None, :, :], axis=-1) * inv_det
        q = xp.cross(s, e1)
        v = (rays @ q.T) * inv_det
        t = xp.sum(e2 * q, axis=-1)[None, :] * inv_det

        hit = valid & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0) & (t > _NEAR_PLANE_M)
        t = xp.where(hit, t, xp.inf)
        depth = xp.minimum(depth, t.min(axis=1))

    return depth


class CpuRayCastRenderer(IRenderer):
    """
    NumPy ray-casting renderer.

    Mesh triangles and per-sensor pixel rays are prepared once; render()
    only transforms triangles and intersects, so it is safe to call from
    several threads.
    """

    xp: Any = np

    def __init__(
        self,
        object_model: ObjectModel,
        cameras: Sequence[CameraData],
        chunk_size: int = 256,
    ) -> None:
        """
        Initialize renderer.

        Args:
            object_model: Meshes of the tracked objects.
            cameras: Camera data, one entry per sensor.
            chunk_size: Triangles per vectorized batch.
        """
        if not cameras:
            raise InvalidDimension("at least one camera is required")

        self._object_model = object_model
        self._cameras = tuple(cameras)
        self._chunk_size = chunk_size
        self._object_triangles = [mesh.triangles for mesh in object_model.meshes]
        self._resolutions = [camera.resolution for camera in self._cameras]
        if len(set(self._resolutions)) != 1:
            raise InvalidDimension(
                f"all sensors must share one working resolution, got {self._resolutions}"
            )
        self._rays = [
            self._to_device(pixel_rays(camera.effective_intrinsics))
            for camera in self._cameras
        ]

    def _to_device(self, array: NDArray[np.float64]) -> Any:
        return array

    def _to_host(self, array: Any) -> NDArray[np.float64]:
        return np.asarray(array)

    def _world_triangles(self, poses: NDArray[np.float64]) -> NDArray[np.float64]:
        """Place every object's triangles at its pose."""
        placed = []
        for triangles, pose in zip(self._object_triangles, poses):
            R = rotation_vector_to_matrix(pose[3:6])
            placed.append(triangles @ R.T + pose[:3])
        return np.concatenate(placed, axis=0)

    def render(self, poses: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Render expected depth images.

        Args:
            poses: Object poses, shape (object_count, 6).

        Returns:
            Depth in meters, shape (sensors, H, W); inf where no surface.
        """
        poses = np.asarray(poses, dtype=np.float64)
        if poses.shape != (self._object_model.object_count, 6):
            raise InvalidDimension(
                f"expected poses of shape ({self._object_model.object_count}, 6), "
                f"got {poses.shape}"
            )

        world = self._world_triangles(poses)
        height, width = self._resolutions[0]
        images = np.empty((len(self._cameras), height, width), dtype=np.float64)

        for index, camera in enumerate(self._cameras):
            cam_tri = camera.extrinsics.world_to_camera(world.reshape(-1, 3))
            depth = cast_depth(
                self.xp,
                self._rays[index],
                self._to_device(cam_tri.reshape(-1, 3, 3)),
                self._chunk_size,
            )
            images[index] = self._to_host(depth).reshape(self._resolutions[index])

        return images

    @property
    def backend_name(self) -> str:
        """Return backend name."""
        return "cpu"

    @property
    def sensors(self) -> int:
        """Number of sensors rendered."""
        return len(self._cameras)

    @property
    def pixel_count(self) -> int:
        """Total number of pixels over all sensors."""
        return sum(h * w for h, w in self._resolutions)
