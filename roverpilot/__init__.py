"""Mini README: Core package initializer for RoverPilot.

RoverPilot plans waypoint routes for a remote vehicle, keeps a command link
to it over interchangeable transports and streams the interpolated
position of a running route. Subpackages:

    * waypoints - coordinate type and the ordered waypoint store.
    * vehicle_link - transports, command codec and the connection manager.
    * route_planning - interpolation and the cancellable route executor.
    * interface - FastAPI control surface.

FastAPI is only imported by ``interface``. Importing ``vehicle_link`` (and
anything built on it, such as ``console``) registers the built-in
transports, which pulls in aiohttp for the HTTP relay.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
