"""Mini README: Short-range radio transport (paired device).

Structure:
    * Advertisement - what a nearby device broadcasts during discovery.
    * RadioAdapter / RadioChannel - hardware-facing seam for radio stacks.
    * SimulatedRadioAdapter - in-process radio used when no hardware is wired in.
    * ShortRangeTransport - discovery-filter connect, then frame writes.

Discovery keeps any device whose name starts with the configured prefix or
which advertises the configured service identifier, then pairs with the
strongest signal. Real radio stacks plug in by implementing
``RadioAdapter``; the simulated adapter keeps the control centre usable
without hardware and records every frame it receives.
"""

from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from ...configuration import RoverPilotSettings
from ...exceptions import TransportError
from ...logging_utils import get_logger
from ..base import DeviceInfo, TransportKind, VehicleTransport
from ..registry import REGISTRY

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Advertisement:
    """A device seen during a discovery scan."""

    name: str
    address: str
    services: Tuple[str, ...] = ()
    rssi: Optional[float] = None


class RadioChannel(ABC):
    """An open link to one paired device."""

    @abstractmethod
    async def write(self, payload: bytes) -> None:
        """Write a frame to the device."""

    @abstractmethod
    async def close(self) -> None:
        """Release the link."""


class RadioAdapter(ABC):
    """Entry point into a radio stack."""

    @abstractmethod
    async def scan(self, timeout: float) -> Sequence[Advertisement]:
        """Return the devices advertising within ``timeout`` seconds."""

    @abstractmethod
    async def open(self, advertisement: Advertisement) -> RadioChannel:
        """Pair with ``advertisement`` and return the open channel."""


class SimulatedChannel(RadioChannel):
    """Channel that keeps written frames in memory."""

    def __init__(self, advertisement: Advertisement) -> None:
        self.advertisement = advertisement
        self.frames: List[bytes] = []
        self.closed = False

    async def write(self, payload: bytes) -> None:
        if self.closed:
            raise TransportError(f"{self.advertisement.name} is no longer paired", fatal=True)
        self.frames.append(payload)
        LOGGER.debug("Simulated radio %s <- %r", self.advertisement.name, payload)

    async def close(self) -> None:
        self.closed = True


class SimulatedRadioAdapter(RadioAdapter):
    """Radio adapter that advertises a fixed set of devices."""

    def __init__(self, devices: Optional[Iterable[Advertisement]] = None) -> None:
        if devices is None:
            devices = [Advertisement(name="CAR-SIM-01", address="00:00:5E:00:53:01", rssi=-48.0)]
        self.devices = list(devices)
        self.channels: List[SimulatedChannel] = []

    async def scan(self, timeout: float) -> Sequence[Advertisement]:
        await asyncio.sleep(0)
        return list(self.devices)

    async def open(self, advertisement: Advertisement) -> RadioChannel:
        channel = SimulatedChannel(advertisement)
        self.channels.append(channel)
        return channel


@contextlib.contextmanager
def _radio_errors(action: str) -> Iterator[None]:
    """Re-raise radio stack failures as fatal ``TransportError``."""

    try:
        yield
    except TransportError:
        raise
    except Exception as error:
        raise TransportError(f"{action}: {error}", fatal=True) from error


def matches_filter(
    advertisement: Advertisement,
    *,
    name_prefix: Optional[str],
    service_uuid: Optional[str],
) -> bool:
    """Return True when the device satisfies either discovery filter."""

    if not name_prefix and not service_uuid:
        return True
    if name_prefix and advertisement.name.startswith(name_prefix):
        return True
    if service_uuid:
        wanted = service_uuid.lower()
        return any(service.lower() == wanted for service in advertisement.services)
    return False


class ShortRangeTransport(VehicleTransport):
    """Transport pairing with the vehicle over a short-range radio."""

    kind = TransportKind.SHORT_RANGE
    connect_params = ("name_prefix", "service_uuid", "scan_seconds")

    def __init__(
        self,
        settings: Optional[RoverPilotSettings] = None,
        adapter: Optional[RadioAdapter] = None,
    ) -> None:
        super().__init__(settings)
        self.adapter = adapter or SimulatedRadioAdapter()
        self._channel: Optional[RadioChannel] = None
        self._device: Optional[Advertisement] = None

    async def connect(
        self,
        *,
        name_prefix: Optional[str] = None,
        service_uuid: Optional[str] = None,
        scan_seconds: Optional[float] = None,
    ) -> DeviceInfo:
        name_prefix = name_prefix if name_prefix is not None else self.settings.short_range_name_prefix
        service_uuid = service_uuid if service_uuid is not None else self.settings.short_range_service_uuid
        timeout = scan_seconds if scan_seconds is not None else self.settings.short_range_scan_seconds

        LOGGER.info("Scanning %.1fs for devices (prefix=%r service=%r)", timeout, name_prefix, service_uuid)
        with _radio_errors("Scan failed"):
            advertisements = await self.adapter.scan(timeout)
        candidates = [
            advertisement
            for advertisement in advertisements
            if matches_filter(advertisement, name_prefix=name_prefix, service_uuid=service_uuid)
        ]
        if not candidates:
            raise TransportError("No matching short-range device found")

        device = max(candidates, key=lambda ad: ad.rssi if ad.rssi is not None else float("-inf"))
        with _radio_errors(f"Pairing with {device.name} failed"):
            self._channel = await self.adapter.open(device)
        self._device = device
        LOGGER.info("Paired with %s (%s)", device.name, device.address)
        return DeviceInfo(name=device.name, address=device.address, signal=device.rssi)

    async def disconnect(self) -> None:
        channel, self._channel = self._channel, None
        self._device = None
        if channel is not None:
            with _radio_errors("Closing the radio channel failed"):
                await channel.close()

    async def send(self, payload: bytes) -> None:
        if self._channel is None:
            raise TransportError("Short-range link is not open", fatal=True)
        with _radio_errors("Radio write failed"):
            await self._channel.write(payload)

    def metadata(self):
        details = super().metadata()
        if self._device is not None:
            details["device"] = self._device.name
            details["address"] = self._device.address
        return details


REGISTRY.register(ShortRangeTransport)
