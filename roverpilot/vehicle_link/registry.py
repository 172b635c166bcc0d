"""Mini README: Transport registry used for capability lookup.

Structure:
    * TransportRegistry - maps ``TransportKind`` values to transport classes.
    * REGISTRY - process-wide registry the built-in transports join on import.

The connection manager asks the registry for a fresh transport instance on
every connect, so it never needs to know which medium it is driving.
Third-party packages can add media through the ``roverpilot.transports``
entry point group (see ``load_plugins``).
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Type, Union

from ..configuration import RoverPilotSettings
from ..exceptions import UnknownTransportError
from ..logging_utils import get_logger
from ..utils.plugin_loader import load_entry_point_plugins
from .base import TransportKind, VehicleTransport

LOGGER = get_logger(__name__)


class TransportRegistry:
    """Simple registry for mapping transport kinds to classes."""

    def __init__(self) -> None:
        self._transports: Dict[TransportKind, Type[VehicleTransport]] = {}

    def register(self, transport: Type[VehicleTransport]) -> Type[VehicleTransport]:
        """Register a transport class; usable as a class decorator."""

        if transport.kind is TransportKind.NONE:
            raise ValueError(f"{transport.__name__} must declare a transport kind")
        LOGGER.debug("Registering transport '%s'", transport.kind.value)
        self._transports[transport.kind] = transport
        return transport

    def available_transports(self) -> Iterable[str]:
        """Return registered kinds for display."""

        return sorted(kind.value for kind in self._transports)

    def __contains__(self, kind: object) -> bool:
        try:
            return TransportKind.from_str(kind) in self._transports  # type: ignore[arg-type]
        except ValueError:
            return False

    def get(self, kind: Union[str, TransportKind]) -> Type[VehicleTransport]:
        """Return the class registered for ``kind``."""

        try:
            resolved = TransportKind.from_str(kind)
        except ValueError as error:
            raise UnknownTransportError(str(error)) from error
        transport_cls = self._transports.get(resolved)
        if transport_cls is None:
            raise UnknownTransportError(f"No transport registered for '{resolved.value}'")
        return transport_cls

    def create(
        self,
        kind: Union[str, TransportKind],
        *,
        settings: Optional[RoverPilotSettings] = None,
    ) -> VehicleTransport:
        """Instantiate the transport registered for ``kind``."""

        transport_cls = self.get(kind)
        LOGGER.info("Creating %s transport", transport_cls.kind.value)
        return transport_cls(settings=settings)

    def load_plugins(self, group: str = "roverpilot.transports") -> int:
        """Register transport classes exposed through entry points."""

        loaded = 0
        for plugin in load_entry_point_plugins(group):
            if isinstance(plugin, type) and issubclass(plugin, VehicleTransport):
                self.register(plugin)
                loaded += 1
            else:
                LOGGER.warning("Entry point %r is not a VehicleTransport subclass", plugin)
        return loaded


REGISTRY = TransportRegistry()
