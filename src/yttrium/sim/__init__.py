"""Simulation module for Yttrium."""

from yttrium.sim.synthetic import (
    SyntheticScene,
    constant_velocity_trajectory,
    static_trajectory,
)

__all__ = [
    "SyntheticScene",
    "constant_velocity_trajectory",
    "static_trajectory",
]
