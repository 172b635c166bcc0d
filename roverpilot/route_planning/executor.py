"""Mini README: Cancellable route execution producing a live position stream.

Structure:
    * RouteExecutionState - IDLE / RUNNING / CANCELLING.
    * RouteRun - one execution; an async iterator over its position samples.
    * RouteExecutor - owns at most one background interpolation task.

``start_route`` snapshots the waypoints it is given, so later edits to the
operator's list never reach a run in flight. The background task publishes
each sample to the run's channel and to sample listeners, then sleeps for
the pacing interval. ``cancel`` cancels the task and waits for it, so once
it returns the executor is IDLE and the stream yields nothing more.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import AsyncIterator, Callable, Iterable, Optional, Tuple

from ..configuration import RoverPilotSettings, get_settings
from ..exceptions import AlreadyRunningError, InsufficientWaypointsError
from ..logging_utils import get_logger
from ..utils.listeners import ListenerSet
from ..waypoints import Coordinate
from .interpolation import count_route_samples, iter_route_samples

LOGGER = get_logger(__name__)

_END_OF_STREAM = object()


class RouteExecutionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLING = "cancelling"


class RouteRun:
    """Handle for a single route execution.

    Iterate it with ``async for`` to receive position samples. The stream
    can be consumed once; it ends when the route completes or is cancelled.
    Samples not yet read when the run is cancelled are discarded.
    """

    def __init__(self, waypoints: Tuple[Coordinate, ...], steps: int) -> None:
        self.waypoints = waypoints
        self.steps = steps
        self.total_samples = count_route_samples(len(waypoints), steps)
        self.emitted = 0
        self.completed = False
        self.cancelled = False
        self._queue: asyncio.Queue = asyncio.Queue()
        self._consumed = False

    @property
    def finished(self) -> bool:
        return self.completed or self.cancelled

    def __aiter__(self) -> AsyncIterator[Coordinate]:
        if self._consumed:
            raise RuntimeError("A route's position stream can only be iterated once")
        self._consumed = True
        return self._stream()

    async def _stream(self) -> AsyncIterator[Coordinate]:
        while True:
            item = await self._queue.get()
            if item is _END_OF_STREAM:
                return
            yield item

    def _publish(self, sample: Coordinate) -> None:
        self.emitted += 1
        self._queue.put_nowait(sample)

    def _close(self, *, cancelled: bool) -> None:
        if self.finished:
            return
        if cancelled:
            self.cancelled = True
            while not self._queue.empty():
                self._queue.get_nowait()
        else:
            self.completed = True
        self._queue.put_nowait(_END_OF_STREAM)


class RouteExecutor:
    """Turn waypoint snapshots into paced position samples, one route at a time."""

    def __init__(
        self,
        *,
        steps: Optional[int] = None,
        step_interval: Optional[float] = None,
        settings: Optional[RoverPilotSettings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.steps = steps if steps is not None else settings.interpolation_steps
        self.step_interval = step_interval if step_interval is not None else settings.step_interval_seconds
        if self.steps < 1:
            raise ValueError("steps must be at least 1")
        if self.step_interval < 0:
            raise ValueError("step_interval cannot be negative")

        self._state = RouteExecutionState.IDLE
        self._task: Optional[asyncio.Task] = None
        self._run: Optional[RouteRun] = None
        self._last_position: Optional[Coordinate] = None
        self._sample_listeners: ListenerSet[Coordinate] = ListenerSet("position_sample")
        self._completed_listeners: ListenerSet[RouteRun] = ListenerSet("route_completed")
        self._state_listeners: ListenerSet[RouteExecutionState] = ListenerSet("route_state")
        LOGGER.debug("Initialised RouteExecutor with steps=%s interval=%s", self.steps, self.step_interval)

    @property
    def state(self) -> RouteExecutionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is not RouteExecutionState.IDLE

    @property
    def current_run(self) -> Optional[RouteRun]:
        return self._run

    @property
    def last_position(self) -> Optional[Coordinate]:
        return self._last_position

    def subscribe_samples(self, callback: Callable[[Coordinate], None]) -> Callable[[], None]:
        return self._sample_listeners.subscribe(callback)

    def subscribe_completed(self, callback: Callable[[RouteRun], None]) -> Callable[[], None]:
        return self._completed_listeners.subscribe(callback)

    def subscribe_state(self, callback: Callable[[RouteExecutionState], None]) -> Callable[[], None]:
        return self._state_listeners.subscribe(callback)

    def start_route(self, waypoints: Iterable[Coordinate]) -> RouteRun:
        """Begin executing ``waypoints`` in a background task.

        Must be called with an event loop running. Raises
        ``InsufficientWaypointsError`` for fewer than two waypoints and
        ``AlreadyRunningError`` while another run is active; neither
        disturbs the current state.
        """

        snapshot = tuple(waypoints)
        if len(snapshot) < 2:
            raise InsufficientWaypointsError(len(snapshot))
        if self._state is not RouteExecutionState.IDLE:
            raise AlreadyRunningError("A route is already running")

        loop = asyncio.get_running_loop()
        run = RouteRun(snapshot, self.steps)
        self._run = run
        self._set_state(RouteExecutionState.RUNNING)
        task = loop.create_task(self._drive(run), name="route-executor")
        task.add_done_callback(lambda finished: self._on_task_done(run, finished))
        self._task = task
        LOGGER.info("Route started: %s waypoints, %s samples", len(snapshot), run.total_samples)
        return run

    async def cancel(self) -> None:
        """Stop the running route and wait until the executor is IDLE."""

        task = self._task
        run = self._run
        if task is None or run is None or self._state is RouteExecutionState.IDLE:
            return
        self._set_state(RouteExecutionState.CANCELLING)
        task.cancel()
        # a cancelled caller still sees its own CancelledError
        await asyncio.wait([task])
        self._conclude(run, cancelled=True)

    async def wait_finished(self) -> None:
        """Wait for the current run to complete or be cancelled."""

        task = self._task
        if task is None:
            return
        await asyncio.wait([task])

    async def _drive(self, run: RouteRun) -> None:
        for index, sample in enumerate(iter_route_samples(run.waypoints, self.steps)):
            if index:
                await asyncio.sleep(self.step_interval)
            self._last_position = sample
            run._publish(sample)
            self._sample_listeners.notify(sample)
        self._conclude(run, cancelled=False)

    def _on_task_done(self, run: RouteRun, task: asyncio.Task) -> None:
        if task.cancelled():
            self._conclude(run, cancelled=True)
            return
        error = task.exception()
        if error is not None:
            LOGGER.error("Route task failed: %s", error, exc_info=error)
            self._conclude(run, cancelled=True)

    def _conclude(self, run: RouteRun, *, cancelled: bool) -> None:
        if self._run is not run:
            return
        self._run = None
        self._task = None
        run._close(cancelled=cancelled)
        self._set_state(RouteExecutionState.IDLE)
        if cancelled:
            LOGGER.info("Route cancelled after %s of %s samples", run.emitted, run.total_samples)
        else:
            LOGGER.info("Route completed (%s samples)", run.emitted)
            self._completed_listeners.notify(run)

    def _set_state(self, state: RouteExecutionState) -> None:
        if state is self._state:
            return
        self._state = state
        self._state_listeners.notify(state)
