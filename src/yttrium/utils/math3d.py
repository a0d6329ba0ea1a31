"""
3D math utilities for Yttrium.

Provides rotation conversions between rotation vectors (the orientation
parameterization of the tracker state), rotation matrices and Euler angles.
"""

import cv2
import numpy as np
from numpy.typing import NDArray


def euler_to_rotation_matrix(
    roll: float, pitch: float, yaw: float
) -> NDArray[np.float64]:
    """
    Convert Euler angles to rotation matrix.

    Uses ZYX convention (yaw-pitch-roll).

    Args:
        roll: Roll angle in radians.
        pitch: Pitch angle in radians.
        yaw: Yaw angle in radians.

    Returns:
        3x3 rotation matrix.
    """
    cr, sr = np.cos(roll), np.sin(roll)
    cp, sp = np.cos(pitch), np.sin(pitch)
    cy, sy = np.cos(yaw), np.sin(yaw)

    R = np.array(
        [
            [cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr],
            [sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr],
            [-sp, cp * sr, cp * cr],
        ],
        dtype=np.float64,
    )

    return R


def rotation_vector_to_matrix(rvec: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert rotation vector (axis * angle) to rotation matrix.

    Args:
        rvec: 3-element rotation vector.

    Returns:
        3x3 rotation matrix.
    """
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3, 1)
    R, _ = cv2.Rodrigues(rvec)
    return R


def rotation_matrix_to_vector(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert rotation matrix to rotation vector.

    Args:
        R: 3x3 rotation matrix.

    Returns:
        3-element rotation vector.
    """
    rvec, _ = cv2.Rodrigues(np.asarray(R, dtype=np.float64))
    return rvec.flatten()


def euler_to_rotation_vector(
    roll: float, pitch: float, yaw: float
) -> NDArray[np.float64]:
    """Convert ZYX Euler angles to a rotation vector."""
    return rotation_matrix_to_vector(euler_to_rotation_matrix(roll, pitch, yaw))


def rotation_angle_between(
    rvec_a: NDArray[np.float64], rvec_b: NDArray[np.float64]
) -> float:
    """
    Angle of the relative rotation between two orientations.

    Args:
        rvec_a: First orientation as rotation vector.
        rvec_b: Second orientation as rotation vector.

    Returns:
        Geodesic angle in radians, in [0, pi].
    """
    R_rel = rotation_vector_to_matrix(rvec_a).T @ rotation_vector_to_matrix(rvec_b)
    cos_angle = np.clip((np.trace(R_rel) - 1.0) / 2.0, -1.0, 1.0)
    return float(np.arccos(cos_angle))


def pose_to_transform(pose: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert a 6-vector pose [x, y, z, rx, ry, rz] to a 4x4 homogeneous transform.

    Args:
        pose: Position followed by rotation vector.

    Returns:
        4x4 transform mapping object coordinates to world coordinates.
    """
    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = rotation_vector_to_matrix(pose[3:6])
    T[:3, 3] = pose[:3]
    return T
