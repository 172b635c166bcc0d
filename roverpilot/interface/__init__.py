"""Mini README: Interactive interfaces for RoverPilot.

Exports the FastAPI application factory that powers the browser-based
control panel and the event hub behind its WebSocket stream.
"""

from .events import EventHub
from .web_app import create_application

__all__ = ["EventHub", "create_application"]
