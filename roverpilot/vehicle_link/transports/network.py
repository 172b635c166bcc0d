"""Mini README: Socket transport for vehicles reachable over the local network.

Structure:
    * NetworkTransport - TCP link speaking newline-delimited JSON frames.

Outbound frames are encoded commands. A background reader parses inbound
telemetry frames and reports them to the connection manager; end-of-stream
or a socket error is reported as a fatal link loss.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from ...configuration import RoverPilotSettings
from ...exceptions import TransportError
from ...logging_utils import get_logger
from ..base import DeviceInfo, TransportKind, VehicleTransport
from ..codec import parse_frame
from ..registry import REGISTRY

LOGGER = get_logger(__name__)


class NetworkTransport(VehicleTransport):
    """Transport connecting to the vehicle by address."""

    kind = TransportKind.NETWORK
    connect_params = ("host", "port", "device_name", "timeout")

    def __init__(self, settings: Optional[RoverPilotSettings] = None) -> None:
        super().__init__(settings)
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._timeout = self.settings.network_timeout_seconds
        self._closing = False
        self.address: Optional[str] = None

    async def connect(
        self,
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
        device_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> DeviceInfo:
        host = host or self.settings.network_host
        port = int(port or self.settings.network_port)
        if timeout is not None:
            self._timeout = timeout
        address = f"{host}:{port}"

        LOGGER.info("Opening socket to %s", address)
        try:
            reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), self._timeout)
        except asyncio.TimeoutError as error:
            raise TransportError(f"Timed out connecting to {address}") from error
        except OSError as error:
            raise TransportError(f"Could not reach {address}: {error}") from error

        self._writer = writer
        self._closing = False
        self.address = address
        self._reader_task = asyncio.create_task(self._read_frames(reader), name=f"network-reader-{address}")
        return DeviceInfo(name=device_name or address, address=address)

    async def send(self, payload: bytes) -> None:
        writer = self._writer
        if writer is None or writer.is_closing():
            raise TransportError("Socket is not open", fatal=True)
        try:
            writer.write(payload)
            await asyncio.wait_for(writer.drain(), self._timeout)
        except asyncio.TimeoutError as error:
            raise TransportError("Timed out sending command") from error
        except OSError as error:
            raise TransportError(f"Send failed: {error}", fatal=True) from error

    async def disconnect(self) -> None:
        self._closing = True
        task, self._reader_task = self._reader_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.wait([task])
        await self._close_writer()

    async def _close_writer(self) -> None:
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as error:
            LOGGER.debug("Socket to %s closed with error: %s", self.address, error)

    async def _read_frames(self, reader: asyncio.StreamReader) -> None:
        reason: Exception = ConnectionResetError("Vehicle closed the connection")
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                telemetry = parse_frame(line)
                if telemetry is not None:
                    self.report_telemetry(telemetry)
        except (OSError, ValueError) as error:
            reason = error
        if self._closing:
            return
        self._reader_task = None
        await self._close_writer()
        self.report_lost(TransportError(f"Link to {self.address} lost: {reason}", fatal=True))

    def metadata(self):
        details = super().metadata()
        if self.address:
            details["address"] = self.address
        return details


REGISTRY.register(NetworkTransport)
