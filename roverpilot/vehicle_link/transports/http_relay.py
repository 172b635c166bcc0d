"""Mini README: HTTP relay transport.

Structure:
    * HttpRelayTransport - POSTs each encoded command to a relay endpoint.

Some vehicles sit behind a small HTTP service (by default
``http://localhost:3001/command``) which forwards JSON command bodies to the
drive controller. Connecting probes the endpoint; any HTTP response proves
the relay is reachable, whatever its status code.
"""

from __future__ import annotations

import asyncio
from typing import Optional
from urllib.parse import urlsplit

import aiohttp

from ...configuration import RoverPilotSettings
from ...exceptions import TransportError
from ...logging_utils import get_logger
from ..base import DeviceInfo, TransportKind, VehicleTransport
from ..registry import REGISTRY

LOGGER = get_logger(__name__)


class HttpRelayTransport(VehicleTransport):
    """Transport forwarding commands through an HTTP relay."""

    kind = TransportKind.HTTP_RELAY
    connect_params = ("url", "timeout")

    def __init__(self, settings: Optional[RoverPilotSettings] = None) -> None:
        super().__init__(settings)
        self._session: Optional[aiohttp.ClientSession] = None
        self.url: Optional[str] = None

    async def connect(self, *, url: Optional[str] = None, timeout: Optional[float] = None) -> DeviceInfo:
        self.url = url or self.settings.relay_url
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.settings.relay_timeout_seconds)
        session = aiohttp.ClientSession(timeout=client_timeout)
        try:
            async with session.get(self.url) as response:
                LOGGER.debug("Relay probe %s answered HTTP %s", self.url, response.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as error:
            await session.close()
            raise TransportError(f"Relay {self.url} unreachable: {error}") from error
        self._session = session
        return DeviceInfo(name=urlsplit(self.url).netloc or self.url, address=self.url)

    async def send(self, payload: bytes) -> None:
        if self._session is None or self.url is None:
            raise TransportError("Relay session is not open", fatal=True)
        try:
            async with self._session.post(
                self.url,
                data=payload.strip(),
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status >= 400:
                    raise TransportError(f"Relay rejected command with HTTP {response.status}")
        except aiohttp.ClientConnectionError as error:
            raise TransportError(f"Relay connection failed: {error}", fatal=True) from error
        except (aiohttp.ClientError, asyncio.TimeoutError) as error:
            raise TransportError(f"Relay request failed: {error}") from error

    async def disconnect(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            await session.close()

    def metadata(self):
        details = super().metadata()
        if self.url:
            details["url"] = self.url
        return details


REGISTRY.register(HttpRelayTransport)
