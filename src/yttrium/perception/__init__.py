"""Perception module for Yttrium."""

from yttrium.perception.camera import DepthFrame, stack_observation, valid_depth_mask
from yttrium.perception.calib import CameraData, CameraIntrinsics, CameraExtrinsics
from yttrium.perception.objects import (
    ObjectModel,
    ObjectResourceIdentifier,
    TriangleMesh,
    load_object_model,
)

__all__ = [
    "DepthFrame",
    "stack_observation",
    "valid_depth_mask",
    "CameraData",
    "CameraIntrinsics",
    "CameraExtrinsics",
    "ObjectModel",
    "ObjectResourceIdentifier",
    "TriangleMesh",
    "load_object_model",
]
