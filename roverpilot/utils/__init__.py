"""Mini README: Utility helpers for RoverPilot.

Exports the listener collection used for change notifications and the
entry point plugin loader used for transport discovery. GeoJSON helpers
live in ``utils.geojson`` and are imported explicitly.
"""

from .listeners import ListenerSet
from .plugin_loader import load_entry_point_plugins

__all__ = ["ListenerSet", "load_entry_point_plugins"]
