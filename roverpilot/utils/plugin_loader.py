"""Mini README: Dynamic plugin loading helpers.

Structure:
    * load_entry_point_plugins - load objects published under an entry point group.

Used by the transport registry to discover third-party link media that
expose ``roverpilot.transports`` entry points.
"""

from __future__ import annotations

from importlib.metadata import entry_points
from typing import List

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


def load_entry_point_plugins(group: str = "roverpilot.transports") -> List[object]:
    """Load and return the objects registered under ``group``."""

    loaded_plugins = []
    for entry_point in entry_points(group=group):
        try:
            plugin = entry_point.load()
        except Exception as exc:  # pragma: no cover - logged and skipped
            LOGGER.exception("Failed to load plugin '%s': %s", entry_point.name, exc)
            continue
        loaded_plugins.append(plugin)
        LOGGER.info("Loaded plugin '%s'", entry_point.name)
    return loaded_plugins
