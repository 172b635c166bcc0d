"""Mini README: Fan-out of UI events to WebSocket clients.

Structure:
    * EventHub - subscribes to the console's components and copies every
      event into one bounded queue per connected client.

Events are plain JSON-ready dictionaries tagged with ``"event"``:
``waypoints_changed``, ``position_sample``, ``route_state``,
``route_completed``, ``connection_status_changed`` and ``telemetry``.
A slow client loses its oldest queued events rather than stalling the
route executor.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Set

from ..console import MissionConsole
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

Event = Dict[str, Any]


class EventHub:
    """Broadcast core notifications to every attached client queue."""

    def __init__(self, console: MissionConsole, *, queue_size: int = 256) -> None:
        self.console = console
        self.queue_size = queue_size
        self._queues: Set[asyncio.Queue] = set()
        self._unsubscribers: List[Callable[[], None]] = [
            console.store.subscribe(
                lambda snapshot: self.publish(
                    {"event": "waypoints_changed", "waypoints": [point.as_dict() for point in snapshot]}
                )
            ),
            console.executor.subscribe_samples(
                lambda sample: self.publish({"event": "position_sample", "position": sample.as_dict()})
            ),
            console.executor.subscribe_state(
                lambda state: self.publish({"event": "route_state", "state": state.value})
            ),
            console.executor.subscribe_completed(
                lambda run: self.publish({"event": "route_completed", "samples": run.emitted})
            ),
            console.connection.subscribe(
                lambda status: self.publish({"event": "connection_status_changed", "status": status.as_dict()})
            ),
            console.connection.subscribe_telemetry(
                lambda telemetry: self.publish({"event": "telemetry", "telemetry": telemetry.as_dict()})
            ),
        ]

    @property
    def client_count(self) -> int:
        return len(self._queues)

    def snapshot_event(self) -> Event:
        """Describe the full current state for a newly attached client."""

        executor = self.console.executor
        return {
            "event": "snapshot",
            "waypoints": [point.as_dict() for point in self.console.store.snapshot()],
            "route_state": executor.state.value,
            "position": executor.last_position.as_dict() if executor.last_position else None,
            "connection": self.console.connection.status().as_dict(),
        }

    def attach(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._queues.add(queue)
        LOGGER.debug("Event client attached (%s total)", len(self._queues))
        return queue

    def detach(self, queue: asyncio.Queue) -> None:
        self._queues.discard(queue)
        LOGGER.debug("Event client detached (%s left)", len(self._queues))

    def publish(self, event: Event) -> None:
        for queue in self._queues:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(event)

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._queues.clear()
