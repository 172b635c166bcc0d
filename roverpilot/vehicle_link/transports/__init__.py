"""Mini README: Concrete vehicle transports.

Each module registers its transport with ``REGISTRY`` on import. New media
subclass ``VehicleTransport``, declare a ``kind`` and register the same way.
"""

from .http_relay import HttpRelayTransport
from .network import NetworkTransport
from .short_range import (
    Advertisement,
    RadioAdapter,
    RadioChannel,
    ShortRangeTransport,
    SimulatedRadioAdapter,
)

__all__ = [
    "Advertisement",
    "HttpRelayTransport",
    "NetworkTransport",
    "RadioAdapter",
    "RadioChannel",
    "ShortRangeTransport",
    "SimulatedRadioAdapter",
]
