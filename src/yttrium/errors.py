"""
Error taxonomy for Yttrium.

Assembly-time errors abort tracker construction; per-cycle errors are
raised for the failing cycle only and leave the tracker belief untouched.
"""


class YttriumError(Exception):
    """Base class for all Yttrium errors."""

    pass


class ConfigurationError(YttriumError):
    """Invalid or inconsistent parameters at assembly time."""

    pass


class ResourceNotFound(YttriumError, FileNotFoundError):
    """Object model, camera data or dataset could not be resolved."""

    pass


class CapabilityUnavailable(ConfigurationError):
    """Requested backend (e.g. GPU rendering) is not supported by this install."""

    pass


class NumericalDegeneracy(YttriumError):
    """Covariance reconstruction produced a non-PSD or non-finite result."""

    pass


class InvalidDimension(YttriumError, ValueError):
    """Mismatched vector or matrix sizes passed into a model interface."""

    pass
