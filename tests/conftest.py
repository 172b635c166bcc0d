"""Mini README: Shared fixtures for the RoverPilot test-suite.

Provides fast settings (no pacing between samples) and a fake transport
registered in a private registry so connection tests never touch the
network or the module-level registry.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

import pytest

from roverpilot.configuration import RoverPilotSettings
from roverpilot.exceptions import TransportError
from roverpilot.vehicle_link import (
    ConnectionManager,
    DeviceInfo,
    TransportKind,
    TransportRegistry,
    VehicleTransport,
)
from roverpilot.waypoints import Coordinate


class FakeTransport(VehicleTransport):
    """In-memory transport whose behaviour tests steer per instance."""

    kind = TransportKind.NETWORK
    connect_params = ("fail", "delay")

    def __init__(self, settings: Optional[RoverPilotSettings] = None) -> None:
        super().__init__(settings)
        self.sent: List[bytes] = []
        self.send_error: Optional[TransportError] = None
        self.disconnect_error: Optional[Exception] = None
        self.disconnect_calls = 0

    async def connect(self, *, fail: bool = False, delay: float = 0.0) -> DeviceInfo:
        await asyncio.sleep(delay)
        if fail:
            raise TransportError("Vehicle did not answer")
        return DeviceInfo(name="fake-car", signal=-50.0)

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.disconnect_error is not None:
            raise self.disconnect_error

    async def send(self, payload: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(payload)


@pytest.fixture
def settings() -> RoverPilotSettings:
    return RoverPilotSettings(interpolation_steps=4, step_interval_seconds=0.0)


@pytest.fixture
def fake_registry() -> TransportRegistry:
    registry = TransportRegistry()
    registry.register(FakeTransport)
    return registry


@pytest.fixture
def manager(fake_registry: TransportRegistry, settings: RoverPilotSettings) -> ConnectionManager:
    return ConnectionManager(fake_registry, settings=settings)


@pytest.fixture
def start_point() -> Coordinate:
    return Coordinate(0.0, 0.0)


@pytest.fixture
def end_point() -> Coordinate:
    return Coordinate(10.0, 10.0)
