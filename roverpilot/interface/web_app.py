"""Mini README: FastAPI-powered control surface for RoverPilot.

Structure:
    * create_application - application factory wiring routes to a console.
    * _http_error - translation of core errors into HTTP responses.

The interface lets a browser map place waypoints, start and stop the
simulated traversal, manage the vehicle link and follow live events over
the ``/events`` WebSocket. All state lives in the ``MissionConsole`` the
factory creates (or receives), so tests can drive the same objects the
routes use.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Form, HTTPException, WebSocket
from fastapi.responses import JSONResponse

from ..configuration import RoverPilotSettings, get_settings
from ..console import MissionConsole
from ..exceptions import (
    AlreadyConnectedError,
    AlreadyConnectingError,
    AlreadyRunningError,
    EmptyStoreError,
    InsufficientWaypointsError,
    NotConnectedError,
    RoverPilotError,
    TransportFailureError,
    UnknownTransportError,
)
from ..logging_utils import configure_root_logger, get_logger
from ..route_planning import route_duration_seconds
from ..utils.geojson import route_to_geojson, waypoints_from_geojson
from ..vehicle_link import REGISTRY
from ..waypoints import Coordinate
from .events import EventHub

LOGGER = get_logger(__name__)

_STATUS_CODES = (
    (InsufficientWaypointsError, 400),
    (UnknownTransportError, 404),
    (EmptyStoreError, 409),
    (AlreadyRunningError, 409),
    (AlreadyConnectingError, 409),
    (AlreadyConnectedError, 409),
    (NotConnectedError, 409),
    (TransportFailureError, 502),
)


def _http_error(error: RoverPilotError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def create_application(
    settings: Optional[RoverPilotSettings] = None,
    console: Optional[MissionConsole] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    settings = settings or get_settings()
    configure_root_logger(settings.log_level)
    console = console or MissionConsole(settings=settings)
    hub = EventHub(console)
    plugins = REGISTRY.load_plugins()
    if plugins:
        LOGGER.info("Registered %s transport plugins", plugins)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        LOGGER.info("Shutting down control surface")
        await console.shutdown()
        hub.close()

    app = FastAPI(title="RoverPilot Control Centre", version="0.1.0", lifespan=lifespan)
    app.state.console = console
    app.state.events = hub

    def route_payload() -> Dict[str, Any]:
        executor = console.executor
        run = executor.current_run
        return {
            "state": executor.state.value,
            "position": executor.last_position.as_dict() if executor.last_position else None,
            "emitted": run.emitted if run else None,
            "total_samples": run.total_samples if run else None,
        }

    def waypoint_payload() -> Dict[str, Any]:
        return {"waypoints": [point.as_dict() for point in console.store.snapshot()]}

    @app.get("/")
    async def overview() -> JSONResponse:
        """Summarise waypoints, route, link status and recent messages."""

        LOGGER.debug("Rendering overview with %s waypoints", len(console.store))
        return JSONResponse(
            {
                **waypoint_payload(),
                "route": route_payload(),
                "connection": console.connection.status().as_dict(),
                "transports": list(REGISTRY.available_transports()),
                "default_center": console.default_center.as_dict(),
                "messages": list(console.messages),
            }
        )

    @app.get("/waypoints")
    async def list_waypoints() -> JSONResponse:
        return JSONResponse(waypoint_payload())

    @app.post("/waypoints", status_code=201)
    async def add_waypoint(lat: float = Form(...), lng: float = Form(...)) -> JSONResponse:
        """Append a waypoint placed on the map or typed in by the operator."""

        outcome = console.add_waypoint(Coordinate(lat=lat, lng=lng))
        return JSONResponse({**outcome.as_dict(), **waypoint_payload()}, status_code=201)

    @app.post("/waypoints/current-location")
    async def use_current_location(lat: float = Form(...), lng: float = Form(...)) -> JSONResponse:
        outcome = console.use_current_location(Coordinate(lat=lat, lng=lng))
        return JSONResponse({**outcome.as_dict(), **waypoint_payload()})

    @app.post("/waypoints/car-location")
    async def use_car_location() -> JSONResponse:
        """Append the vehicle's last reported position."""

        outcome = console.use_car_location()
        return JSONResponse({**outcome.as_dict(), **waypoint_payload()})

    @app.post("/waypoints/import")
    async def import_waypoints(route_geojson: str = Form(...)) -> JSONResponse:
        """Append every position of a GeoJSON LineString or MultiPoint."""

        try:
            coordinates = waypoints_from_geojson(route_geojson)
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        for coordinate in coordinates:
            console.add_waypoint(coordinate)
        LOGGER.info("Imported %s waypoints from GeoJSON", len(coordinates))
        return JSONResponse({"imported": len(coordinates), **waypoint_payload()})

    @app.delete("/waypoints/last")
    async def clear_previous() -> JSONResponse:
        try:
            outcome = await console.clear_previous()
        except RoverPilotError as error:
            raise _http_error(error) from error
        return JSONResponse({**outcome.as_dict(), **waypoint_payload()})

    @app.delete("/waypoints")
    async def clear_all() -> JSONResponse:
        try:
            outcome = await console.clear_all()
        except RoverPilotError as error:
            raise _http_error(error) from error
        return JSONResponse({**outcome.as_dict(), **waypoint_payload()})

    @app.get("/route.geojson")
    async def route_geojson() -> JSONResponse:
        return JSONResponse(route_to_geojson(console.store.snapshot(), name="Planned route"))

    @app.get("/route")
    async def route_status() -> JSONResponse:
        return JSONResponse(route_payload())

    @app.post("/route/start")
    async def start_route() -> JSONResponse:
        """Start moving along the current waypoints."""

        try:
            run = await console.start_movement()
        except RoverPilotError as error:
            raise _http_error(error) from error
        executor = console.executor
        return JSONResponse(
            {
                **route_payload(),
                "total_samples": run.total_samples,
                "duration_seconds": route_duration_seconds(
                    len(run.waypoints), executor.steps, executor.step_interval
                ),
            }
        )

    @app.post("/route/stop")
    async def stop_route() -> JSONResponse:
        outcome = await console.stop_movement()
        return JSONResponse({**outcome.as_dict(), **route_payload()})

    @app.get("/connection")
    async def connection_status() -> JSONResponse:
        manager = console.connection
        transport = manager.transport
        return JSONResponse(
            {
                "state": manager.state.value,
                **manager.status().as_dict(),
                "metadata": transport.metadata() if transport else {},
            }
        )

    @app.post("/connection/connect")
    async def connect(
        transport: str = Form(...),
        host: Optional[str] = Form(None),
        port: Optional[int] = Form(None),
        device_name: Optional[str] = Form(None),
        name_prefix: Optional[str] = Form(None),
        service_uuid: Optional[str] = Form(None),
        url: Optional[str] = Form(None),
    ) -> JSONResponse:
        """Open the vehicle link over the requested transport."""

        supplied = {
            "host": host,
            "port": port,
            "device_name": device_name,
            "name_prefix": name_prefix,
            "service_uuid": service_uuid,
            "url": url,
        }
        try:
            accepted = REGISTRY.get(transport).connect_params
            params = {key: value for key, value in supplied.items() if value is not None and key in accepted}
            status = await console.connection.connect(transport, **params)
        except RoverPilotError as error:
            raise _http_error(error) from error
        return JSONResponse(status.as_dict())

    @app.post("/connection/disconnect")
    async def disconnect() -> JSONResponse:
        await console.connection.disconnect()
        return JSONResponse(console.connection.status().as_dict())

    @app.get("/telemetry")
    async def telemetry() -> JSONResponse:
        latest = console.connection.latest_telemetry()
        return JSONResponse({"telemetry": latest.as_dict() if latest else None})

    @app.get("/transports")
    async def transports() -> JSONResponse:
        return JSONResponse(
            {
                "transports": [
                    {"kind": kind, "connect_params": list(REGISTRY.get(kind).connect_params)}
                    for kind in REGISTRY.available_transports()
                ]
            }
        )

    @app.websocket("/events")
    async def events(websocket: WebSocket) -> None:
        """Stream UI events until the client disconnects."""

        await websocket.accept()
        queue = hub.attach()
        await websocket.send_json(hub.snapshot_event())

        async def forward() -> None:
            while True:
                await websocket.send_json(await queue.get())

        forwarder = asyncio.create_task(forward())
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            forwarder.cancel()
            (outcome,) = await asyncio.gather(forwarder, return_exceptions=True)
            if not isinstance(outcome, asyncio.CancelledError):
                LOGGER.debug("Event forwarder stopped: %r", outcome)
            hub.detach(queue)

    return app
