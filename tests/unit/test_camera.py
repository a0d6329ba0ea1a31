"""Unit tests for depth frames and camera data."""

from pathlib import Path

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from yttrium.errors import InvalidDimension
from yttrium.perception.calib import CameraData, CameraIntrinsics
from yttrium.perception.camera import DepthFrame, stack_observation, valid_depth_mask


class TestDepthFrame:
    """Tests for DepthFrame."""

    def test_single_sensor_promoted(self) -> None:
        """(H, W) images become (1, H, W)."""
        frame = DepthFrame(depth_m=np.ones((4, 6)), timestamp_s=0.0, frame_id=0)
        assert frame.sensors == 1
        assert (frame.height, frame.width) == (4, 6)

    def test_invalid_shape(self) -> None:
        """One-dimensional depth is rejected."""
        with pytest.raises(InvalidDimension):
            DepthFrame(depth_m=np.ones(5), timestamp_s=0.0, frame_id=0)

    def test_valid_mask(self) -> None:
        """NaN, inf and non-positive depth are invalid."""
        depth = np.array([[1.0, np.nan, np.inf, 0.0, -2.0]])
        frame = DepthFrame(depth_m=depth, timestamp_s=0.0, frame_id=0)

        assert_array_equal(frame.valid_mask[0, 0], [True, False, False, False, False])
        assert_array_equal(valid_depth_mask(depth), frame.valid_mask[0])

    def test_downsampled(self) -> None:
        """Every factor-th pixel is kept."""
        depth = np.arange(2 * 5 * 7, dtype=float).reshape(2, 5, 7)
        frame = DepthFrame(depth_m=depth, timestamp_s=1.5, frame_id=3)

        small = frame.downsampled(2)

        assert small.depth_m.shape == (2, 2, 3)
        assert small.depth_m[1, 1, 2] == depth[1, 2, 4]
        assert small.timestamp_s == 1.5
        assert frame.downsampled(1) is frame

    def test_observation_is_sensor_major(self) -> None:
        """Flattening matches stacking the per-sensor images."""
        images = [np.full((2, 3), 1.0), np.full((2, 3), 2.0)]
        frame = DepthFrame(depth_m=np.stack(images), timestamp_s=0.0, frame_id=0)

        observation = frame.to_observation()

        assert observation.shape == (12,)
        assert_array_equal(observation, stack_observation(images))
        assert_array_equal(observation[6:], 2.0)


class TestCameraData:
    """Tests for camera intrinsics and camera data."""

    def test_downsampled_intrinsics(self, intrinsics) -> None:
        """Downsampling scales the camera matrix and resolution."""
        small = intrinsics.downsampled(4)

        assert (small.width, small.height) == (16, 12)
        assert small.fx == pytest.approx(20.0)
        assert small.cx == pytest.approx(31.5 / 4)

    def test_working_resolution(self, intrinsics) -> None:
        """CameraData reports the downsampled resolution."""
        camera = CameraData(intrinsics=intrinsics, downsampling_factor=2)

        assert camera.resolution == (24, 32)
        assert camera.pixel_count == 24 * 32

    def test_invalid_factor(self, intrinsics) -> None:
        """Downsampling factors below one are rejected."""
        with pytest.raises(ValueError):
            CameraData(intrinsics=intrinsics, downsampling_factor=0)

    def test_from_yaml(self, tmp_path: Path) -> None:
        """Intrinsics load from YAML."""
        path = tmp_path / "intrinsics.yaml"
        path.write_text(
            "camera_matrix: [[100, 0, 15.5], [0, 100, 11.5], [0, 0, 1]]\n"
            "image_width: 32\n"
            "image_height: 24\n"
        )

        camera = CameraData.from_config(intrinsics_path=path, downsampling_factor=2)

        assert camera.intrinsics.fx == 100.0
        assert camera.resolution == (12, 16)

    def test_default_intrinsics(self) -> None:
        """Defaults center the principal point."""
        intrinsics = CameraIntrinsics.default(64, 48)
        assert intrinsics.cx == pytest.approx(31.5)
        assert intrinsics.pixel_count == 64 * 48
