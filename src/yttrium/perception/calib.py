"""
Camera calibration utilities for Yttrium.

Provides loading and management of depth camera intrinsics, extrinsics and
the per-sensor camera data consumed by the renderer.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from yttrium.utils.io import load_yaml


@dataclass(frozen=True)
class CameraIntrinsics:
    """
    Camera intrinsic parameters.

    Attributes:
        K: 3x3 camera matrix.
        width: Image width.
        height: Image height.
    """

    K: NDArray[np.float64]
    width: int
    height: int

    @classmethod
    def from_yaml(cls, path: Path) -> "CameraIntrinsics":
        """
        Load intrinsics from YAML file.

        Expected format:
            camera_matrix: [[fx, 0, cx], [0, fy, cy], [0, 0, 1]]
            image_width: 640
            image_height: 480

        Args:
            path: Path to YAML file.

        Returns:
            CameraIntrinsics instance.
        """
        data = load_yaml(path)

        K = np.array(data["camera_matrix"], dtype=np.float64)
        width = int(data.get("image_width", 640))
        height = int(data.get("image_height", 480))

        return cls(K=K, width=width, height=height)

    @classmethod
    def default(cls, width: int = 640, height: int = 480) -> "CameraIntrinsics":
        """
        Create default intrinsics (approximate, for testing).

        Uses typical structured-light depth sensor parameters.

        Args:
            width: Image width.
            height: Image height.

        Returns:
            CameraIntrinsics with default values.
        """
        fx = fy = width * 0.9  # Approximate focal length
        cx, cy = (width - 1) / 2, (height - 1) / 2

        K = np.array(
            [
                [fx, 0, cx],
                [0, fy, cy],
                [0, 0, 1],
            ],
            dtype=np.float64,
        )

        return cls(K=K, width=width, height=height)

    def downsampled(self, factor: int) -> "CameraIntrinsics":
        """
        Return intrinsics for an image downsampled by an integer factor.

        Args:
            factor: Downsampling factor (1 keeps the original resolution).

        Returns:
            Scaled intrinsics.
        """
        if factor == 1:
            return self
        # Images are subsampled (every factor-th pixel), so all of K scales
        K = self.K.copy()
        K[:2, :] /= factor
        return CameraIntrinsics(
            K=K, width=self.width // factor, height=self.height // factor
        )

    @property
    def fx(self) -> float:
        """Focal length x."""
        return float(self.K[0, 0])

    @property
    def fy(self) -> float:
        """Focal length y."""
        return float(self.K[1, 1])

    @property
    def cx(self) -> float:
        """Principal point x."""
        return float(self.K[0, 2])

    @property
    def cy(self) -> float:
        """Principal point y."""
        return float(self.K[1, 2])

    @property
    def pixel_count(self) -> int:
        """Number of pixels in one image."""
        return self.width * self.height


@dataclass(frozen=True)
class CameraExtrinsics:
    """
    Camera extrinsic parameters (camera to world transform).

    Attributes:
        R: 3x3 rotation matrix (camera -> world).
        t: 3-element translation vector (camera -> world).
    """

    R: NDArray[np.float64]
    t: NDArray[np.float64]

    @classmethod
    def from_yaml(cls, path: Path) -> "CameraExtrinsics":
        """
        Load extrinsics from YAML file.

        Expected format:
            rotation_matrix: [[r11, r12, r13], [r21, r22, r23], [r31, r32, r33]]
            translation: [tx, ty, tz]

        Args:
            path: Path to YAML file.

        Returns:
            CameraExtrinsics instance.
        """
        data = load_yaml(path)

        R = np.array(data["rotation_matrix"], dtype=np.float64)
        t = np.array(data.get("translation", [0, 0, 0]), dtype=np.float64)

        return cls(R=R, t=t)

    @classmethod
    def identity(cls) -> "CameraExtrinsics":
        """
        Create identity transform (world frame is the camera frame).

        Returns:
            CameraExtrinsics with identity transform.
        """
        return cls(
            R=np.eye(3, dtype=np.float64),
            t=np.zeros(3, dtype=np.float64),
        )

    def world_to_camera(self, p_world: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Transform points from world frame to camera frame.

        Args:
            p_world: Points in world frame, shape (N, 3).

        Returns:
            Points in camera frame, shape (N, 3).
        """
        return (p_world - self.t) @ self.R


@dataclass(frozen=True)
class CameraData:
    """
    Static description of one depth sensor.

    Attributes:
        intrinsics: Intrinsics at full sensor resolution.
        extrinsics: Camera-to-world transform.
        downsampling_factor: Integer factor applied to incoming images.
        frame_id: Sensor frame name.
    """

    intrinsics: CameraIntrinsics
    extrinsics: CameraExtrinsics = field(default_factory=CameraExtrinsics.identity)
    downsampling_factor: int = 1
    frame_id: str = "depth_camera"

    def __post_init__(self) -> None:
        """Validate downsampling factor."""
        if self.downsampling_factor < 1:
            raise ValueError("downsampling_factor must be >= 1")

    @classmethod
    def from_config(
        cls,
        intrinsics_path: Optional[Path] = None,
        extrinsics_path: Optional[Path] = None,
        width: int = 640,
        height: int = 480,
        downsampling_factor: int = 1,
    ) -> "CameraData":
        """
        Load camera data from config paths.

        Args:
            intrinsics_path: Path to intrinsics YAML (optional).
            extrinsics_path: Path to extrinsics YAML (optional).
            width: Default image width if no intrinsics.
            height: Default image height if no intrinsics.
            downsampling_factor: Image downsampling factor.

        Returns:
            CameraData instance.
        """
        if intrinsics_path and Path(intrinsics_path).exists():
            intrinsics = CameraIntrinsics.from_yaml(Path(intrinsics_path))
        else:
            intrinsics = CameraIntrinsics.default(width, height)

        if extrinsics_path and Path(extrinsics_path).exists():
            extrinsics = CameraExtrinsics.from_yaml(Path(extrinsics_path))
        else:
            extrinsics = CameraExtrinsics.identity()

        return cls(
            intrinsics=intrinsics,
            extrinsics=extrinsics,
            downsampling_factor=downsampling_factor,
        )

    @property
    def effective_intrinsics(self) -> CameraIntrinsics:
        """Intrinsics at the resolution the filter works on."""
        return self.intrinsics.downsampled(self.downsampling_factor)

    @property
    def resolution(self) -> tuple[int, int]:
        """Working resolution (height, width)."""
        intrinsics = self.effective_intrinsics
        return intrinsics.height, intrinsics.width

    @property
    def pixel_count(self) -> int:
        """Number of pixels at working resolution."""
        return self.effective_intrinsics.pixel_count
