"""
Yttrium - Depth-based rigid object tracking with a robust Gaussian filter.

This package provides the sigma-point quadrature, object transition and
robust depth observation models, and the predict/update recursion that
tracks the 6-DoF pose of rigid objects from depth camera images.
"""

from yttrium.version import __version__

__all__ = ["__version__"]
