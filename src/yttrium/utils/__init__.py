"""Utility modules for Yttrium."""

from yttrium.utils.time import Timer
from yttrium.utils.math3d import (
    rotation_vector_to_matrix,
    rotation_matrix_to_vector,
    euler_to_rotation_vector,
    rotation_angle_between,
)
from yttrium.utils.io import ensure_dir, load_yaml, save_yaml

__all__ = [
    "Timer",
    "rotation_vector_to_matrix",
    "rotation_matrix_to_vector",
    "euler_to_rotation_vector",
    "rotation_angle_between",
    "ensure_dir",
    "load_yaml",
    "save_yaml",
]
