"""Mini README: Vehicle link subsystem.

Re-exports the transport abstractions, the registry used to look transports
up by kind, the command codec and the connection manager. ``base`` holds
the abstract interface, ``transports`` the concrete media and ``manager``
the state machine the interface talks to.
"""

from .base import (
    ClearAllCommand,
    ClearPreviousCommand,
    Command,
    DeviceInfo,
    MoveCommand,
    StatusLevel,
    TransportKind,
    VehicleTelemetry,
    VehicleTransport,
)
from .codec import decode_command, encode_command
from .manager import ConnectionManager, ConnectionState, ConnectionStatus
from .registry import REGISTRY, TransportRegistry
from . import transports  # noqa: F401  # ensure built-in transports register on import

__all__ = [
    "ClearAllCommand",
    "ClearPreviousCommand",
    "Command",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStatus",
    "DeviceInfo",
    "MoveCommand",
    "REGISTRY",
    "StatusLevel",
    "TransportKind",
    "TransportRegistry",
    "VehicleTelemetry",
    "VehicleTransport",
    "decode_command",
    "encode_command",
]
