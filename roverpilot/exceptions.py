"""Mini README: Exception hierarchy shared by every RoverPilot subsystem.

Structure:
    * RoverPilotError - root of all library errors.
    * TransportError - raised by transport implementations.
    * VehicleConnectionError family - connection manager failures.
    * RouteError family - route executor precondition violations.
    * EmptyStoreError - removal from an empty waypoint store.

Collaborators (mission console, web interface) catch these and turn them
into operator feedback. Nothing in the core retries on failure.
"""

from __future__ import annotations


class RoverPilotError(Exception):
    """Base exception for all RoverPilot errors."""


class TransportError(RoverPilotError):
    """A transport could not complete connect, send or disconnect.

    ``fatal`` marks failures after which the link is unusable (socket closed,
    device gone). The connection manager drops to disconnected on those.
    """

    def __init__(self, message: str, *, fatal: bool = False) -> None:
        self.fatal = fatal
        super().__init__(message)


class VehicleConnectionError(RoverPilotError):
    """Connection manager refused or failed an operation."""


class AlreadyConnectingError(VehicleConnectionError):
    """A connection attempt is already in flight."""


class AlreadyConnectedError(VehicleConnectionError):
    """A transport is connected; disconnect before connecting again."""


class NotConnectedError(VehicleConnectionError):
    """No transport is connected."""


class UnknownTransportError(VehicleConnectionError):
    """No transport is registered for the requested kind."""


class TransportFailureError(VehicleConnectionError):
    """The active transport reported an error."""

    def __init__(self, detail: str, *, fatal: bool = False) -> None:
        self.detail = detail
        self.fatal = fatal
        super().__init__(detail)


class RouteError(RoverPilotError):
    """Route executor precondition violated."""


class InsufficientWaypointsError(RouteError):
    """A route needs at least two waypoints."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"A route needs at least 2 waypoints, got {count}")


class AlreadyRunningError(RouteError):
    """A route is already running."""


class EmptyStoreError(RoverPilotError):
    """The waypoint store holds no waypoints."""
