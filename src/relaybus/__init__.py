"""relaybus: in-process event bus with sync, deferred and async triggers."""

from relaybus.bus import EventBus, Listening
from relaybus.dispatch import ALL_EVENTS
from relaybus.errors import EventbusConfigurationError, EventbusError, InvalidArgumentError, ProxyDestroyedError
from relaybus.mainbus import init_main_eventbus, main_eventbus
from relaybus.proxy import EventProxy
from relaybus.registry import Binding, EventRegistry

__version__ = "0.1.0"

__all__ = [
    "ALL_EVENTS",
    "Binding",
    "EventBus",
    "EventProxy",
    "EventRegistry",
    "EventbusConfigurationError",
    "EventbusError",
    "InvalidArgumentError",
    "Listening",
    "ProxyDestroyedError",
    "__version__",
    "init_main_eventbus",
    "main_eventbus",
]
