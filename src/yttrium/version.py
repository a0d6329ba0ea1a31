"""Version information for Yttrium."""

__version__ = "0.3.0"
