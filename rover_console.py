"""Mini README: Entry point CLI for the RoverPilot control centre.

Commands:
    * run - serve the FastAPI control surface with uvicorn.
    * simulate - execute a route in the terminal and print each sample.
    * transports - list the registered vehicle transports.

Settings come from ``ROVERPILOT_*`` environment variables; command-line
options override them for a single invocation.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
import uvicorn

from roverpilot.configuration import get_settings
from roverpilot.exceptions import RouteError
from roverpilot.logging_utils import configure_root_logger
from roverpilot.route_planning import RouteExecutor
from roverpilot.utils.geojson import waypoints_from_geojson
from roverpilot.vehicle_link import REGISTRY
from roverpilot.waypoints import Coordinate

cli = typer.Typer(help="Launch and manage the RoverPilot control centre.")


def _parse_waypoint(value: str) -> Coordinate:
    try:
        lat_text, lng_text = value.split(",")
        return Coordinate(lat=float(lat_text), lng=float(lng_text))
    except ValueError as error:
        raise typer.BadParameter(f"Expected 'lat,lng' but got '{value}'") from error


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.log_level)

    # 0.0.0.0 and :: are bind-all addresses a browser cannot open
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting RoverPilot on {effective_host}:{effective_port}.\n"
        f"Open your browser at http://{browser_host}:{effective_port}"
    )
    uvicorn.run(
        "roverpilot.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command()
def simulate(
    waypoints: Optional[List[str]] = typer.Argument(None, help="Waypoints as 'lat,lng' pairs."),
    geojson: Optional[Path] = typer.Option(None, help="Read waypoints from a GeoJSON LineString file."),
    steps: int = typer.Option(None, min=1, help="Interpolation steps per segment."),
    interval: float = typer.Option(None, min=0.0, help="Seconds between samples."),
) -> None:
    """Run a route locally and print every interpolated position."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    route = [_parse_waypoint(value) for value in waypoints or []]
    if geojson is not None:
        try:
            route.extend(waypoints_from_geojson(geojson.read_text(encoding="utf-8")))
        except ValueError as error:
            raise typer.BadParameter(str(error), param_hint="--geojson") from error

    executor = RouteExecutor(steps=steps, step_interval=interval, settings=settings)

    async def _drive() -> int:
        count = 0
        async for sample in executor.start_route(route):
            count += 1
            typer.echo(f"{count:5d}  {sample}")
        return count

    try:
        total = asyncio.run(_drive())
    except RouteError as error:
        typer.secho(str(error), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from error
    typer.echo(f"Route completed with {total} samples.")


@cli.command()
def transports() -> None:
    """List transports a vehicle link can use."""

    REGISTRY.load_plugins()
    for kind in REGISTRY.available_transports():
        params = ", ".join(REGISTRY.get(kind).connect_params) or "-"
        typer.echo(f"{kind:12s} {params}")


if __name__ == "__main__":
    cli()
