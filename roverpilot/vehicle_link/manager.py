"""Mini README: Connection manager owning the single vehicle link.

Structure:
    * ConnectionState - DISCONNECTED / CONNECTING / CONNECTED.
    * ConnectionStatus - immutable snapshot shared with the interface.
    * ConnectionManager - state machine over interchangeable transports.

State machine::

    DISCONNECTED --connect()--> CONNECTING --success--> CONNECTED
         ^                          |                       |
         +------- failure ----------+--- disconnect() / fatal link loss

Only one connection attempt may be in flight: the CONNECTING state is set
synchronously before the first await, so a concurrent ``connect`` fails
immediately instead of queueing. Switching transports requires an explicit
``disconnect``. Nothing here reconnects or retries on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from ..configuration import RoverPilotSettings
from ..exceptions import (
    AlreadyConnectedError,
    AlreadyConnectingError,
    NotConnectedError,
    TransportError,
    TransportFailureError,
)
from ..logging_utils import get_logger
from ..utils.listeners import ListenerSet
from .base import Command, DeviceInfo, TransportKind, VehicleTelemetry, VehicleTransport
from .codec import encode_command
from .registry import REGISTRY, TransportRegistry

LOGGER = get_logger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True, slots=True)
class ConnectionStatus:
    """What the operator sees about the vehicle link."""

    is_connected: bool = False
    transport: TransportKind = TransportKind.NONE
    device_name: Optional[str] = None
    signal: Optional[float] = None
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "is_connected": self.is_connected,
            "transport": self.transport.value,
            "device_name": self.device_name,
            "signal": self.signal,
            "error": self.error,
        }


class ConnectionManager:
    """Own zero or one connected transport and route commands through it."""

    def __init__(
        self,
        registry: Optional[TransportRegistry] = None,
        *,
        settings: Optional[RoverPilotSettings] = None,
    ) -> None:
        self._registry = registry or REGISTRY
        self._settings = settings
        self._state = ConnectionState.DISCONNECTED
        self._transport: Optional[VehicleTransport] = None
        self._status = ConnectionStatus()
        self._telemetry: Optional[VehicleTelemetry] = None
        self._status_listeners: ListenerSet[ConnectionStatus] = ListenerSet("connection_status_changed")
        self._telemetry_listeners: ListenerSet[VehicleTelemetry] = ListenerSet("telemetry")

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def transport(self) -> Optional[VehicleTransport]:
        return self._transport

    def status(self) -> ConnectionStatus:
        """Return the current status snapshot without blocking."""

        return self._status

    def latest_telemetry(self) -> Optional[VehicleTelemetry]:
        return self._telemetry

    def subscribe(self, callback: Callable[[ConnectionStatus], None]) -> Callable[[], None]:
        return self._status_listeners.subscribe(callback)

    def subscribe_telemetry(self, callback: Callable[[VehicleTelemetry], None]) -> Callable[[], None]:
        return self._telemetry_listeners.subscribe(callback)

    async def connect(self, kind: Union[str, TransportKind], **params: Any) -> ConnectionStatus:
        """Open a link over ``kind`` and return the resulting status.

        Raises ``AlreadyConnectingError`` while another attempt is pending,
        ``AlreadyConnectedError`` while a link is up, ``UnknownTransportError``
        for an unregistered kind and ``TransportFailureError`` when the
        transport cannot connect (the manager is DISCONNECTED afterwards).
        """

        if self._state is ConnectionState.CONNECTING:
            raise AlreadyConnectingError("A connection attempt is already in progress")
        if self._state is ConnectionState.CONNECTED:
            raise AlreadyConnectedError(
                f"Already connected via {self._status.transport.value}; disconnect first"
            )

        transport = self._registry.create(kind, settings=self._settings)
        self._state = ConnectionState.CONNECTING
        transport.bind(
            on_lost=lambda error: self._handle_link_lost(transport, error),
            on_telemetry=lambda telemetry: self._handle_telemetry(transport, telemetry),
        )
        LOGGER.info("Connecting via %s", transport.kind.value)

        try:
            device = await transport.connect(**params)
        except TransportError as error:
            self._abandon_attempt(transport.kind, str(error))
            raise TransportFailureError(str(error), fatal=True) from error
        except BaseException:
            self._abandon_attempt(transport.kind, "Connection attempt aborted")
            raise

        self._transport = transport
        self._state = ConnectionState.CONNECTED
        LOGGER.info("Connected via %s to %s", transport.kind.value, device.name)
        self._publish(self._connected_status(transport.kind, device))
        return self._status

    async def disconnect(self) -> None:
        """Close the active link. A no-op when nothing is connected."""

        transport = self._transport
        if transport is None:
            return
        self._detach()
        try:
            await transport.disconnect()
        except TransportError as error:
            LOGGER.warning("Error while closing %s link: %s", transport.kind.value, error)
        finally:
            LOGGER.info("Disconnected from %s", transport.kind.value)
            self._publish(ConnectionStatus())

    async def send(self, command: Command) -> None:
        """Encode ``command`` and transmit it over the active link.

        Raises ``NotConnectedError`` without a link and
        ``TransportFailureError`` when transmission fails. Fatal failures
        also drop the manager to DISCONNECTED.
        """

        transport = self._transport
        if transport is None or self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError("Not connected to the vehicle")

        payload = encode_command(command)
        try:
            await transport.send(payload)
        except TransportError as error:
            LOGGER.error("Sending '%s' over %s failed: %s", command.tag, transport.kind.value, error)
            if error.fatal:
                await self._drop(transport, str(error))
            raise TransportFailureError(str(error), fatal=error.fatal) from error
        LOGGER.debug("Sent '%s' over %s", command.tag, transport.kind.value)

    def _connected_status(self, kind: TransportKind, device: DeviceInfo) -> ConnectionStatus:
        return ConnectionStatus(
            is_connected=True,
            transport=kind,
            device_name=device.name,
            signal=device.signal,
        )

    def _abandon_attempt(self, kind: TransportKind, reason: str) -> None:
        LOGGER.warning("Connecting via %s failed: %s", kind.value, reason)
        self._state = ConnectionState.DISCONNECTED
        self._publish(ConnectionStatus(error=reason))

    async def _drop(self, transport: VehicleTransport, reason: str) -> None:
        if self._transport is not transport:
            return
        self._detach()
        try:
            await transport.disconnect()
        except Exception as error:
            LOGGER.debug("Ignoring close error on dropped link: %s", error)
        self._publish(ConnectionStatus(error=reason))

    def _detach(self) -> None:
        self._transport = None
        self._state = ConnectionState.DISCONNECTED
        self._telemetry = None

    def _handle_link_lost(self, transport: VehicleTransport, error: Exception) -> None:
        if self._transport is not transport:
            return
        LOGGER.error("Link via %s lost: %s", transport.kind.value, error)
        self._detach()
        self._publish(ConnectionStatus(error=str(error)))

    def _handle_telemetry(self, transport: VehicleTransport, telemetry: VehicleTelemetry) -> None:
        if self._transport is not transport:
            return
        self._telemetry = telemetry
        if telemetry.signal is not None and telemetry.signal != self._status.signal:
            self._publish(replace(self._status, signal=telemetry.signal))
        self._telemetry_listeners.notify(telemetry)

    def _publish(self, status: ConnectionStatus) -> None:
        self._status = status
        self._status_listeners.notify(status)
