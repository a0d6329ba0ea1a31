"""Unit tests for 3D math utilities."""

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal

from yttrium.utils.math3d import (
    euler_to_rotation_matrix,
    euler_to_rotation_vector,
    pose_to_transform,
    rotation_angle_between,
    rotation_matrix_to_vector,
    rotation_vector_to_matrix,
)


class TestRotations:
    """Tests for rotation conversions."""

    def test_identity(self) -> None:
        """Zero angles give the identity."""
        assert_array_almost_equal(euler_to_rotation_matrix(0, 0, 0), np.eye(3))
        assert_array_almost_equal(rotation_vector_to_matrix(np.zeros(3)), np.eye(3))

    def test_yaw_rotation(self) -> None:
        """A yaw of 90 degrees maps x onto y."""
        R = euler_to_rotation_matrix(0.0, 0.0, np.pi / 2)
        assert_array_almost_equal(R @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0])

    def test_rotation_vector_round_trip(self) -> None:
        """Matrix and vector conversions are inverse."""
        rvec = np.array([0.1, -0.4, 0.25])
        assert_array_almost_equal(
            rotation_matrix_to_vector(rotation_vector_to_matrix(rvec)), rvec
        )

    def test_euler_to_vector_matches_matrix(self) -> None:
        """Euler angles convert consistently to a rotation vector."""
        rvec = euler_to_rotation_vector(0.5, 0.35, 0.0)
        assert_array_almost_equal(
            rotation_vector_to_matrix(rvec), euler_to_rotation_matrix(0.5, 0.35, 0.0)
        )

    def test_angle_between(self) -> None:
        """The relative angle is the geodesic distance."""
        a = np.array([0.0, 0.0, 0.2])
        b = np.array([0.0, 0.0, 0.5])

        assert rotation_angle_between(a, b) == pytest.approx(0.3)
        assert rotation_angle_between(a, a) == pytest.approx(0.0, abs=1e-7)


class TestPoseToTransform:
    """Tests for pose_to_transform."""

    def test_transform_applies_pose(self) -> None:
        """The transform rotates then translates object points."""
        pose = np.array([1.0, 2.0, 3.0, 0.0, 0.0, np.pi / 2])

        T = pose_to_transform(pose)

        assert_array_almost_equal(T @ [1.0, 0.0, 0.0, 1.0], [1.0, 3.0, 3.0, 1.0])
        assert_array_almost_equal(T[3], [0.0, 0.0, 0.0, 1.0])
