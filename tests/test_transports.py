"""Mini README: Tests for the built-in vehicle transports.

The short-range transport runs against its simulated radio, the network
transport against a local TCP server and the HTTP relay against an
aiohttp test server, each driven through a real ``ConnectionManager``.
"""

import asyncio

import pytest
from aiohttp import test_utils, web

from roverpilot.console import MissionConsole
from roverpilot.exceptions import TransportError, TransportFailureError
from roverpilot.vehicle_link import (
    ClearAllCommand,
    ClearPreviousCommand,
    ConnectionManager,
    ConnectionState,
    MoveCommand,
    TransportRegistry,
    decode_command,
)
from roverpilot.vehicle_link.transports import (
    Advertisement,
    RadioChannel,
    ShortRangeTransport,
    SimulatedRadioAdapter,
)
from roverpilot.vehicle_link.transports.short_range import matches_filter
from roverpilot.waypoints import Coordinate


def _adapter():
    return SimulatedRadioAdapter(
        [
            Advertisement("CAR-A", "AA", rssi=-70.0),
            Advertisement("CAR-B", "BB", rssi=-40.0),
            Advertisement("TRACKER", "CC", services=("ABC-123",), rssi=-10.0),
        ]
    )


def test_filters_match_prefix_or_service():
    tracker = Advertisement("TRACKER", "CC", services=("ABC-123",))
    assert matches_filter(tracker, name_prefix=None, service_uuid=None)
    assert matches_filter(tracker, name_prefix="CAR-", service_uuid="abc-123")
    assert not matches_filter(tracker, name_prefix="CAR-", service_uuid=None)


@pytest.mark.asyncio
async def test_short_range_pairs_with_strongest_match(settings):
    transport = ShortRangeTransport(settings, adapter=_adapter())

    device = await transport.connect(name_prefix="CAR-")

    assert device.name == "CAR-B"
    assert transport.metadata()["address"] == "BB"


@pytest.mark.asyncio
async def test_short_range_service_filter(settings):
    transport = ShortRangeTransport(settings, adapter=_adapter())
    device = await transport.connect(name_prefix="", service_uuid="abc-123")
    assert device.name == "TRACKER"


@pytest.mark.asyncio
async def test_short_range_without_match_fails(settings):
    transport = ShortRangeTransport(settings, adapter=_adapter())
    with pytest.raises(TransportError):
        await transport.connect(name_prefix="BOAT-")


@pytest.mark.asyncio
async def test_short_range_writes_frames_until_disconnected(settings):
    adapter = _adapter()
    transport = ShortRangeTransport(settings, adapter=adapter)
    await transport.connect(name_prefix="CAR-")

    await transport.send(b'{"command":"p"}\n')
    await transport.disconnect()
    await transport.disconnect()

    channel = adapter.channels[0]
    assert channel.frames == [b'{"command":"p"}\n']
    assert channel.closed
    with pytest.raises(TransportError) as excinfo:
        await transport.send(b'{"command":"c"}\n')
    assert excinfo.value.fatal


@pytest.mark.asyncio
async def test_default_short_range_link_through_manager(settings):
    manager = ConnectionManager(settings=settings)
    status = await manager.connect("short_range")
    await manager.send(ClearPreviousCommand())

    assert status.device_name == "CAR-SIM-01"
    assert status.signal == -48.0
    await manager.disconnect()


async def _free_port():
    server = await asyncio.start_server(lambda reader, writer: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return port


@pytest.mark.asyncio
async def test_network_link_sends_commands_and_reads_telemetry(settings):
    received = asyncio.Queue()

    async def handle(reader, writer):
        try:
            writer.write(b'{"type":"telemetry","battery":90,"signal":-40}\n')
            await writer.drain()
            while True:
                line = await reader.readline()
                if not line:
                    break
                await received.put(line)
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    manager = ConnectionManager(settings=settings)
    telemetry_seen = asyncio.Event()
    manager.subscribe_telemetry(lambda telemetry: telemetry_seen.set())
    try:
        status = await manager.connect("network", host="127.0.0.1", port=port, device_name="rover")
        await asyncio.wait_for(telemetry_seen.wait(), 2)
        await manager.send(MoveCommand(Coordinate(61.0, 28.0)))
        line = await asyncio.wait_for(received.get(), 2)
        telemetry = manager.latest_telemetry()
    finally:
        await manager.disconnect()
        server.close()
        await server.wait_closed()

    assert status.device_name == "rover"
    assert telemetry.battery_percent == 90.0
    assert manager.latest_telemetry() is None
    assert decode_command(line) == MoveCommand(Coordinate(61.0, 28.0))


@pytest.mark.asyncio
async def test_network_link_loss_is_reported(settings):
    async def handle(reader, writer):
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    manager = ConnectionManager(settings=settings)
    lost = asyncio.Event()
    manager.subscribe(lambda status: lost.set() if status.error else None)
    try:
        await manager.connect("network", host="127.0.0.1", port=port)
        await asyncio.wait_for(lost.wait(), 2)
    finally:
        await manager.disconnect()
        server.close()
        await server.wait_closed()

    assert manager.state is ConnectionState.DISCONNECTED
    assert "lost" in manager.status().error


@pytest.mark.asyncio
async def test_network_connect_refused(settings):
    port = await _free_port()
    manager = ConnectionManager(settings=settings)

    with pytest.raises(TransportFailureError):
        await manager.connect("network", host="127.0.0.1", port=port)
    assert manager.state is ConnectionState.DISCONNECTED


def _relay_app(bodies, status=200):
    async def health_check(request):
        return web.Response(text="relay ready")

    async def command(request):
        bodies.append(await request.json())
        return web.Response(status=status)

    app = web.Application()
    app.router.add_get("/command", health_check)
    app.router.add_post("/command", command)
    return app


@pytest.mark.asyncio
async def test_http_relay_posts_command_bodies(settings):
    bodies = []
    server = test_utils.TestServer(_relay_app(bodies))
    await server.start_server()
    relay_url = server.make_url("/command")
    manager = ConnectionManager(settings=settings)
    try:
        status = await manager.connect("http_relay", url=str(relay_url))
        await manager.send(ClearAllCommand())
        await manager.send(MoveCommand(Coordinate(1.0, 2.0)))
    finally:
        await manager.disconnect()
        await server.close()

    assert status.device_name == f"{relay_url.host}:{relay_url.port}"
    assert bodies == [{"command": "c"}, {"command": "move", "lat": 1.0, "lng": 2.0}]


@pytest.mark.asyncio
async def test_http_relay_error_status_keeps_link(settings):
    server = test_utils.TestServer(_relay_app([], status=503))
    await server.start_server()
    manager = ConnectionManager(settings=settings)
    try:
        await manager.connect("http_relay", url=str(server.make_url("/command")))
        with pytest.raises(TransportFailureError) as excinfo:
            await manager.send(ClearAllCommand())
        state = manager.state
    finally:
        await manager.disconnect()
        await server.close()

    assert not excinfo.value.fatal
    assert state is ConnectionState.CONNECTED


@pytest.mark.asyncio
async def test_http_relay_unreachable(settings):
    port = await _free_port()
    manager = ConnectionManager(settings=settings)

    with pytest.raises(TransportFailureError):
        await manager.connect("http_relay", url=f"http://127.0.0.1:{port}/command")
    assert manager.state is ConnectionState.DISCONNECTED


class _BrokenChannel(RadioChannel):
    async def write(self, payload):
        raise OSError("radio stack write failed")

    async def close(self):
        raise OSError("radio stack close failed")


class _BrokenAdapter(SimulatedRadioAdapter):
    def __init__(self, *, scan_fails=False):
        super().__init__()
        self.scan_fails = scan_fails

    async def scan(self, timeout):
        if self.scan_fails:
            raise RuntimeError("adapter powered off")
        return await super().scan(timeout)

    async def open(self, advertisement):
        return _BrokenChannel()


@pytest.mark.asyncio
async def test_radio_write_failure_becomes_fatal_transport_error(settings):
    transport = ShortRangeTransport(settings, adapter=_BrokenAdapter())
    await transport.connect()

    with pytest.raises(TransportError) as excinfo:
        await transport.send(b'{"command":"c"}\n')
    assert excinfo.value.fatal
    assert "radio stack write failed" in str(excinfo.value)

    with pytest.raises(TransportError):
        await transport.disconnect()


@pytest.mark.asyncio
async def test_radio_scan_failure_fails_connect(settings):
    transport = ShortRangeTransport(settings, adapter=_BrokenAdapter(scan_fails=True))
    with pytest.raises(TransportError) as excinfo:
        await transport.connect()
    assert "adapter powered off" in str(excinfo.value)


@pytest.mark.asyncio
async def test_console_clear_all_survives_broken_radio(settings):
    class BrokenRadioTransport(ShortRangeTransport):
        def __init__(self, settings=None):
            super().__init__(settings, adapter=_BrokenAdapter())

    registry = TransportRegistry()
    registry.register(BrokenRadioTransport)
    manager = ConnectionManager(registry, settings=settings)
    console = MissionConsole(settings=settings, connection=manager)
    await manager.connect("short_range")
    console.add_waypoint(Coordinate(1.0, 1.0))

    outcome = await console.clear_all()

    assert len(console.store) == 0
    assert outcome.message == "Failed to send clear command to car"
    assert "radio stack write failed" in outcome.error
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.status().is_connected is False
