"""Mini README: Mission console coordinating operator actions.

Structure:
    * ActionOutcome - result of an operator action, shaped for notifications.
    * MissionConsole - wires the waypoint store, route executor and
      connection manager together.

The console performs each operator action the way the control panel
expects: local state changes first, then a best-effort command to the
vehicle. A failed command is reported in the outcome but never rolls the
local change back, because the waypoint store is what the operator sees.
Waypoint edits are refused while a route is running.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from .configuration import RoverPilotSettings, get_settings
from .exceptions import AlreadyRunningError, VehicleConnectionError
from .logging_utils import get_logger
from .route_planning import RouteExecutor, RouteRun
from .vehicle_link import (
    ClearAllCommand,
    ClearPreviousCommand,
    Command,
    ConnectionManager,
    MoveCommand,
)
from .waypoints import Coordinate, WaypointStore

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class ActionOutcome:
    """Message and vehicle-notification result of an operator action."""

    message: str
    vehicle_notified: bool = False
    error: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "message": self.message,
            "vehicle_notified": self.vehicle_notified,
            "error": self.error,
        }


class MissionConsole:
    """Operator-facing facade over the route planning and vehicle link core."""

    def __init__(
        self,
        *,
        store: Optional[WaypointStore] = None,
        executor: Optional[RouteExecutor] = None,
        connection: Optional[ConnectionManager] = None,
        settings: Optional[RoverPilotSettings] = None,
        history: int = 50,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store or WaypointStore()
        self.executor = executor or RouteExecutor(settings=self.settings)
        self.connection = connection or ConnectionManager(settings=self.settings)
        self.messages: Deque[str] = deque(maxlen=history)
        self.executor.subscribe_completed(self._on_route_completed)

    @property
    def default_center(self) -> Coordinate:
        return Coordinate(self.settings.default_center_lat, self.settings.default_center_lng)

    def add_waypoint(self, coordinate: Coordinate) -> ActionOutcome:
        self.store.append(coordinate)
        return self._record(ActionOutcome(f"Waypoint added at coordinates: {coordinate}"))

    def use_current_location(self, coordinate: Coordinate) -> ActionOutcome:
        """Restart planning from the operator's position."""

        self.store.reset_to(coordinate)
        return self._record(ActionOutcome("Current location added as starting point"))

    def use_car_location(self) -> ActionOutcome:
        """Append the vehicle's last reported position as a waypoint.

        Nothing is added when the link is down or the vehicle has not
        reported a position yet; the outcome carries the reason.
        """

        if not self.connection.status().is_connected:
            return self._record(
                ActionOutcome("Failed to get car location", error="Not connected to the vehicle")
            )
        telemetry = self.connection.latest_telemetry()
        if telemetry is None or telemetry.position is None:
            return self._record(
                ActionOutcome("Failed to get car location", error="Vehicle has not reported a position")
            )
        self.store.append(telemetry.position)
        return self._record(ActionOutcome("Car location updated"))

    async def clear_previous(self) -> ActionOutcome:
        """Drop the last waypoint, then tell the vehicle to forget it.

        Raises ``EmptyStoreError`` when there is nothing to remove and
        ``AlreadyRunningError`` while a route is running.
        """

        self._ensure_editable()
        self.store.remove_last()
        error = await self._notify_vehicle(ClearPreviousCommand())
        if error is None:
            return self._record(ActionOutcome("Previous waypoint removed and sent command to car", True))
        return self._record(ActionOutcome("Failed to send clear previous command to car", error=error))

    async def clear_all(self) -> ActionOutcome:
        """Drop every waypoint, then tell the vehicle to do the same."""

        self._ensure_editable()
        self.store.clear()
        error = await self._notify_vehicle(ClearAllCommand())
        if error is None:
            return self._record(ActionOutcome("Cleared all waypoints and sent clear command to car", True))
        return self._record(ActionOutcome("Failed to send clear command to car", error=error))

    async def start_movement(self) -> RouteRun:
        """Start the route from the current waypoints and upload its targets.

        Route preconditions surface as ``RouteError``. Upload failures are
        recorded as messages; the local run continues regardless.
        """

        run = self.executor.start_route(self.store.snapshot())
        self._record(ActionOutcome(f"Route started with {len(run.waypoints)} waypoints"))
        for target in run.waypoints[1:]:
            error = await self._notify_vehicle(MoveCommand(target=target))
            if error is not None:
                self._record(ActionOutcome("Route running locally; vehicle was not updated", error=error))
                break
        return run

    async def stop_movement(self) -> ActionOutcome:
        if not self.executor.is_running:
            return self._record(ActionOutcome("No route is running"))
        await self.executor.cancel()
        return self._record(ActionOutcome("Route stopped"))

    async def shutdown(self) -> None:
        """Cancel any route and close the vehicle link."""

        await self.executor.cancel()
        await self.connection.disconnect()

    def _ensure_editable(self) -> None:
        if self.executor.is_running:
            raise AlreadyRunningError("Stop the running route before editing waypoints")

    async def _notify_vehicle(self, command: Command) -> Optional[str]:
        try:
            await self.connection.send(command)
        except VehicleConnectionError as error:
            LOGGER.warning("Vehicle not informed of '%s': %s", command.tag, error)
            return str(error)
        return None

    def _on_route_completed(self, run: RouteRun) -> None:
        self._record(ActionOutcome("Route completed!"))

    def _record(self, outcome: ActionOutcome) -> ActionOutcome:
        self.messages.append(outcome.message)
        if outcome.error is None:
            LOGGER.info(outcome.message)
        else:
            LOGGER.warning("%s: %s", outcome.message, outcome.error)
        return outcome
