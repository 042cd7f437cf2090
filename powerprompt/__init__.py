"""Powerline-style shell prompt generator: segments, themes, configuration and rendering."""

__version__ = "1.0.0"
__all__ = ["__version__"]