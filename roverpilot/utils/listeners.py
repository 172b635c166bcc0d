"""Mini README: Synchronous listener lists used for UI-facing notifications.

Structure:
    * ListenerSet - ordered callbacks with subscribe/unsubscribe and notify.

Every notifying component (waypoint store, route executor, connection
manager) owns one ``ListenerSet`` per event. A failing listener is logged
and skipped so one broken subscriber cannot stall the others.
"""

from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")


class ListenerSet(Generic[T]):
    """Ordered collection of single-argument callbacks."""

    def __init__(self, event_name: str) -> None:
        self.event_name = event_name
        self._callbacks: List[Callable[[T], None]] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that removes it again."""

        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, payload: T) -> None:
        """Call every subscriber in registration order."""

        for callback in list(self._callbacks):
            try:
                callback(payload)
            except Exception:  # pragma: no cover - logged for diagnosis
                LOGGER.exception("Listener for '%s' failed", self.event_name)
