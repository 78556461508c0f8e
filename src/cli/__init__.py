"""compound-eye command-line interface."""

from compound_eye import __version__

__all__ = ["__version__"]
