"""Mini README: Wire encoding for vehicle commands and telemetry frames.

Structure:
    * encode_command / decode_command - JSON object per command.
    * parse_frame - turn an inbound line into telemetry (or ignore it).

Frames are UTF-8 JSON objects terminated by a newline so stream transports
can split them with ``readline``. Commands carry their tag under the
``"command"`` key, the same body the vehicle's HTTP relay accepts:

    {"command": "move", "lat": 61.05, "lng": 28.18}
    {"command": "p"}
    {"command": "c"}

Telemetry frames are tagged with ``"type": "telemetry"``.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from ..logging_utils import get_logger
from ..waypoints import Coordinate
from .base import (
    ClearAllCommand,
    ClearPreviousCommand,
    Command,
    MoveCommand,
    VehicleTelemetry,
)

LOGGER = get_logger(__name__)

FRAME_DELIMITER = b"\n"


def command_to_dict(command: Command) -> Dict[str, Any]:
    """Return the JSON-ready representation of ``command``."""

    body: Dict[str, Any] = {"command": command.tag}
    if isinstance(command, MoveCommand):
        body["lat"] = command.target.lat
        body["lng"] = command.target.lng
    return body


def encode_command(command: Command) -> bytes:
    """Serialise ``command`` into a single newline-terminated frame."""

    return json.dumps(command_to_dict(command), separators=(",", ":")).encode("utf-8") + FRAME_DELIMITER


def decode_command(frame: bytes) -> Command:
    """Parse a frame produced by ``encode_command``."""

    try:
        body = json.loads(frame.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise ValueError("Command frame is not valid JSON") from error
    if not isinstance(body, dict):
        raise ValueError("Command frame must be a JSON object")

    tag = body.get("command")
    if tag == MoveCommand.tag:
        try:
            target = Coordinate(lat=float(body["lat"]), lng=float(body["lng"]))
        except (KeyError, TypeError, ValueError) as error:
            raise ValueError("Move command requires numeric 'lat' and 'lng'") from error
        return MoveCommand(target=target)
    if tag == ClearPreviousCommand.tag:
        return ClearPreviousCommand()
    if tag == ClearAllCommand.tag:
        return ClearAllCommand()
    raise ValueError(f"Unknown command tag: {tag!r}")


def _optional_float(body: Dict[str, Any], key: str) -> Optional[float]:
    value = body.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        LOGGER.debug("Ignoring non-numeric telemetry field %s=%r", key, value)
        return None


def telemetry_from_dict(body: Dict[str, Any]) -> VehicleTelemetry:
    """Build telemetry from a decoded frame, tolerating missing fields."""

    lat = _optional_float(body, "lat")
    lng = _optional_float(body, "lng")
    position = Coordinate(lat=lat, lng=lng) if lat is not None and lng is not None else None
    return VehicleTelemetry(
        battery_percent=_optional_float(body, "battery"),
        obstacle_distance_cm=_optional_float(body, "obstacle_cm"),
        speed_kmh=_optional_float(body, "speed_kmh"),
        position=position,
        signal=_optional_float(body, "signal"),
    )


def parse_frame(frame: bytes) -> Optional[VehicleTelemetry]:
    """Decode an inbound frame; returns None for anything but telemetry."""

    text = frame.decode("utf-8", errors="replace").strip()
    if not text:
        return None
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        LOGGER.debug("Discarding malformed frame: %s", text[:80])
        return None
    if not isinstance(body, dict) or body.get("type") != "telemetry":
        return None
    return telemetry_from_dict(body)
