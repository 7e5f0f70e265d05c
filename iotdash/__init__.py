"""
IoT dashboard engine package.

This package hosts the metric-to-visualization pipeline, the drill-down
interaction engine, the real-time update/alarm loop, and the HTTP transport
that exposes them. See DESIGN.md for the module map.
"""

from .__version__ import __config_model_version__, __version__

__all__ = ["__version__", "__config_model_version__"]
