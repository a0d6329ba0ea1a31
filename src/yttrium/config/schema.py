"""
Pydantic configuration schema for Yttrium.

This module defines all configuration models with strict validation,
enum fields and default values. Cross-field checks live in validation.py.
"""

from enum import Enum
from pathlib import Path
from typing import Optional
import uuid

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class RenderBackend(str, Enum):
    """Depth renderer backend enumeration."""

    CPU = "cpu"
    GPU = "gpu"


# ============================================================================
# Sub-configuration Models
# ============================================================================


class ProjectConfig(BaseModel):
    """Project-level configuration."""

    name: str = Field(default="Yttrium", description="Project name")
    run_id: str = Field(
        default="auto", description="Run identifier (auto generates UUID)"
    )
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    json_logs: bool = Field(default=False, description="Render console logs as JSON")
    output_dir: Path = Field(
        default=Path("./runs"), description="Output directory for logs and results"
    )

    @field_validator("run_id", mode="before")
    @classmethod
    def generate_run_id(cls, v: str) -> str:
        """Generate UUID if run_id is 'auto'."""
        if v == "auto":
            return str(uuid.uuid4())[:8]
        return v


class ObservationConfig(BaseModel):
    """Robust depth observation model parameters."""

    bg_depth: float = Field(
        default=7.0, gt=0, description="Depth assumed where no object surface is rendered"
    )
    fg_noise_std: float = Field(
        default=0.005, gt=0, description="Depth noise std-dev on object surfaces (m)"
    )
    bg_noise_std: float = Field(
        default=0.5, gt=0, description="Depth noise std-dev of the background (m)"
    )
    tail_weight: float = Field(
        default=0.01, ge=0, le=1, description="Mixture weight of the uniform tail"
    )
    uniform_tail_min: float = Field(
        default=0.0, description="Lower bound of the uniform tail (m)"
    )
    uniform_tail_max: float = Field(
        default=7.0, description="Upper bound of the uniform tail (m)"
    )
    sensors: int = Field(default=1, ge=1, description="Number of fused depth streams")


class ObjectTransitionConfig(BaseModel):
    """Per-object motion model parameters."""

    linear_sigma: float = Field(
        default=0.002, ge=0, description="Linear velocity noise std-dev per step"
    )
    angular_sigma: float = Field(
        default=0.01, ge=0, description="Angular velocity noise std-dev per step"
    )
    velocity_factor: float = Field(
        default=0.8,
        ge=0,
        le=1,
        description="Velocity persistence (0 = Brownian pose, 1 = constant velocity)",
    )


class InitialBeliefConfig(BaseModel):
    """Initial belief spread around the provided poses."""

    linear_std: float = Field(default=0.01, ge=0, description="Position std-dev (m)")
    angular_std: float = Field(
        default=0.05, ge=0, description="Orientation std-dev (rad)"
    )
    velocity_std: float = Field(
        default=0.0, ge=0, description="Linear and angular velocity std-dev"
    )
    latent_std: float = Field(default=0.1, ge=0, description="Latent parameter std-dev")


class TrackerConfig(BaseModel):
    """Robust Gaussian filter tracker parameters."""

    ut_alpha: float = Field(
        default=1.0, gt=0, description="Unscented transform spread parameter"
    )
    update_rate: float = Field(
        default=1.0,
        ge=0,
        le=1,
        description="Blend between prediction (0) and observation correction (1)",
    )
    backend: RenderBackend = Field(
        default=RenderBackend.CPU, description="Depth renderer backend"
    )
    workers: int = Field(
        default=1, ge=1, le=64, description="Threads evaluating quadrature points"
    )
    dt: float = Field(default=1.0 / 30.0, gt=0, description="Time step (s)")
    latent_dimension: int = Field(
        default=0, ge=0, description="Number of shared latent state parameters"
    )
    latent_sigma: float = Field(
        default=0.0, ge=0, description="Latent random-walk noise std-dev per step"
    )
    observation: ObservationConfig = Field(default_factory=ObservationConfig)
    object_transition: ObjectTransitionConfig = Field(
        default_factory=ObjectTransitionConfig
    )
    objects: Optional[list[ObjectTransitionConfig]] = Field(
        default=None, description="Per-object overrides of object_transition"
    )
    initial: InitialBeliefConfig = Field(default_factory=InitialBeliefConfig)


class ObjectConfig(BaseModel):
    """Object model resource identifier."""

    package_path: Path = Field(
        default=Path("."), description="Root directory of the object package"
    )
    directory: str = Field(default="objects", description="Mesh sub-directory")
    meshes: list[str] = Field(
        default_factory=list, description="Mesh file names, one per object"
    )


class CameraConfig(BaseModel):
    """Depth camera configuration (one entry per sensor)."""

    intrinsics_path: Optional[Path] = Field(
        default=None, description="Path to camera intrinsics file"
    )
    extrinsics_path: Optional[Path] = Field(
        default=None, description="Path to camera-to-world extrinsics file"
    )
    width: int = Field(default=640, gt=0, description="Frame width")
    height: int = Field(default=480, gt=0, description="Frame height")
    downsampling_factor: int = Field(
        default=4, ge=1, description="Subsampling factor applied to depth images"
    )


# ============================================================================
# Root Configuration Model
# ============================================================================


class YttriumConfig(BaseModel):
    """Root configuration model for Yttrium."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    object: ObjectConfig = Field(default_factory=ObjectConfig)
    cameras: list[CameraConfig] = Field(default_factory=lambda: [CameraConfig()])

    model_config = {"extra": "forbid"}
