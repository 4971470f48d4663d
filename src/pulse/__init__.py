"""Pulse slow-route and cache-interaction reports."""

from pulse._version import __version__

__all__ = ["__version__"]
