"""Mini README: Abstract transport interface and the values it exchanges.

Structure:
    * TransportKind - identifiers for the supported link media.
    * MoveCommand / ClearPreviousCommand / ClearAllCommand - vehicle commands.
    * DeviceInfo - what a transport learned about the vehicle while connecting.
    * VehicleTelemetry - latest battery, obstacle, speed and position report.
    * VehicleTransport - abstract base implemented by each link medium.

Transports only move bytes. Command encoding lives in ``codec`` and the
connection state machine lives in ``manager`` so a new medium (serial,
another radio) only has to implement connect, send and disconnect.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Optional, Tuple, Union

from ..configuration import RoverPilotSettings, get_settings
from ..logging_utils import get_logger
from ..waypoints import Coordinate

LOGGER = get_logger(__name__)


class TransportKind(str, Enum):
    """Enumerate the link media a vehicle can be reached over."""

    NONE = "none"
    SHORT_RANGE = "short_range"
    NETWORK = "network"
    HTTP_RELAY = "http_relay"

    @classmethod
    def from_str(cls, value: Union[str, "TransportKind"]) -> "TransportKind":
        """Coerce user input such as ``"Short-Range"`` into a kind."""

        if isinstance(value, cls):
            return value
        try:
            normalised = value.strip().lower().replace("-", "_").replace(" ", "_")
            return cls(normalised)
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported transport kind: {value}") from error


@dataclass(frozen=True, slots=True)
class MoveCommand:
    """Drive towards ``target``."""

    target: Coordinate
    tag: ClassVar[str] = "move"


@dataclass(frozen=True, slots=True)
class ClearPreviousCommand:
    """Forget the most recently uploaded waypoint."""

    tag: ClassVar[str] = "p"


@dataclass(frozen=True, slots=True)
class ClearAllCommand:
    """Forget every uploaded waypoint."""

    tag: ClassVar[str] = "c"


Command = Union[MoveCommand, ClearPreviousCommand, ClearAllCommand]


@dataclass(frozen=True, slots=True)
class DeviceInfo:
    """Identity of the vehicle a transport connected to."""

    name: str
    address: Optional[str] = None
    signal: Optional[float] = None


class StatusLevel(str, Enum):
    """Severity bands used when presenting telemetry."""

    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class VehicleTelemetry:
    """A single status report received from the vehicle."""

    battery_percent: Optional[float] = None
    obstacle_distance_cm: Optional[float] = None
    speed_kmh: Optional[float] = None
    position: Optional[Coordinate] = None
    signal: Optional[float] = None
    received_at: datetime = field(default_factory=_utcnow)

    def battery_level(self) -> StatusLevel:
        if self.battery_percent is None:
            return StatusLevel.UNKNOWN
        if self.battery_percent > 50:
            return StatusLevel.OK
        if self.battery_percent > 20:
            return StatusLevel.WARNING
        return StatusLevel.CRITICAL

    def obstacle_level(self) -> StatusLevel:
        if self.obstacle_distance_cm is None:
            return StatusLevel.UNKNOWN
        if self.obstacle_distance_cm > 100:
            return StatusLevel.OK
        if self.obstacle_distance_cm > 50:
            return StatusLevel.WARNING
        return StatusLevel.CRITICAL

    def as_dict(self) -> Dict[str, Any]:
        return {
            "battery_percent": self.battery_percent,
            "battery_level": self.battery_level().value,
            "obstacle_distance_cm": self.obstacle_distance_cm,
            "obstacle_level": self.obstacle_level().value,
            "speed_kmh": self.speed_kmh,
            "position": self.position.as_dict() if self.position else None,
            "signal": self.signal,
            "received_at": self.received_at.isoformat(),
        }


LostCallback = Callable[[Exception], None]
TelemetryCallback = Callable[[VehicleTelemetry], None]


class VehicleTransport(ABC):
    """Base interface for vehicle link media.

    Implementations raise ``TransportError`` for every failure they can
    describe. Once connected, a transport reports an unrecoverable link loss
    through ``report_lost`` and inbound status frames through
    ``report_telemetry``; the connection manager installs both hooks via
    ``bind`` before calling ``connect``.
    """

    kind: ClassVar[TransportKind] = TransportKind.NONE
    connect_params: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, settings: Optional[RoverPilotSettings] = None) -> None:
        self.settings = settings or get_settings()
        self._on_lost: Optional[LostCallback] = None
        self._on_telemetry: Optional[TelemetryCallback] = None
        LOGGER.debug("Initialising %s transport", self.kind.value)

    def bind(
        self,
        *,
        on_lost: Optional[LostCallback] = None,
        on_telemetry: Optional[TelemetryCallback] = None,
    ) -> None:
        """Install the callbacks used to report link loss and telemetry."""

        self._on_lost = on_lost
        self._on_telemetry = on_telemetry

    @abstractmethod
    async def connect(self, **params: Any) -> DeviceInfo:
        """Open the link and describe the vehicle on the other end."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the link and release resources. Safe to call twice."""

    @abstractmethod
    async def send(self, payload: bytes) -> None:
        """Transmit one encoded command."""

    def report_lost(self, error: Exception) -> None:
        LOGGER.warning("%s link lost: %s", self.kind.value, error)
        if self._on_lost is not None:
            self._on_lost(error)

    def report_telemetry(self, telemetry: VehicleTelemetry) -> None:
        if self._on_telemetry is not None:
            self._on_telemetry(telemetry)

    def metadata(self) -> Dict[str, str]:
        """Return diagnostic metadata for status displays."""

        return {"transport": self.kind.value}
