"""EventProxy: a revocable view over an EventBus.

Hand an EventProxy to a component (a plugin, a view, a request handler) instead of the
bus itself. Everything the component registers goes through the proxy's private bus via
listen_to / listen_to_once / stop_listening, so destroy() removes exactly those
listeners and nothing else. Triggers and bus-wide introspection go straight to the
target bus.

A destroyed proxy raises ProxyDestroyedError from every method, including a second
destroy().
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from relaybus.bus import EventBus
from relaybus.errors import InvalidArgumentError, ProxyDestroyedError
from relaybus.registry import Visitor

DESTROYED_MESSAGE = "This EventProxy instance has been destroyed."


class EventProxy:
    """Proxy registration and triggering to a target EventBus."""

    def __init__(self, eventbus: EventBus) -> None:
        if not isinstance(eventbus, EventBus):
            raise InvalidArgumentError(
                "'eventbus' is not an instance of EventBus.",
                details={"eventbus": eventbus},
            )
        self._eventbus: EventBus | None = eventbus
        self._proxy: EventBus | None = EventBus()

    def _live(self) -> tuple[EventBus, EventBus]:
        if self._eventbus is None or self._proxy is None:
            raise ProxyDestroyedError(DESTROYED_MESSAGE, code="proxy_destroyed")
        return self._eventbus, self._proxy

    @property
    def is_destroyed(self) -> bool:
        return self._eventbus is None or self._proxy is None

    def destroy(self) -> None:
        """Remove every listener added through this proxy and drop the target."""
        eventbus, proxy = self._live()
        removed = self.proxy_event_count
        proxy.stop_listening(eventbus)
        self._eventbus = None
        self._proxy = None
        logger.debug("EventProxy destroyed; removed {} listeners from {}", removed, eventbus)

    # -- registration ---------------------------------------------------------------

    def on(self, name: Any, callback: Callable[..., Any] | None = None, context: Any = None) -> EventProxy:
        eventbus, proxy = self._live()
        proxy.listen_to(eventbus, name, callback, context)
        return self

    def once(self, name: Any, callback: Callable[..., Any] | None = None, context: Any = None) -> EventProxy:
        """Like on(), but each resolved name fires at most once."""
        eventbus, proxy = self._live()
        proxy.listen_to_once(eventbus, name, callback, context)
        return self

    def off(self, name: Any = None, callback: Any = None, context: Any = None) -> EventProxy:
        """Remove listeners added through this proxy. Listeners added elsewhere are untouched."""
        eventbus, proxy = self._live()
        proxy.stop_listening(eventbus, name, callback, context)
        return self

    # -- triggering -------------------------------------------------------------------

    def trigger(self, name: Any, *args: Any) -> EventProxy:
        eventbus, _ = self._live()
        eventbus.trigger(name, *args)
        return self

    def trigger_defer(self, name: Any, *args: Any) -> EventProxy:
        eventbus, _ = self._live()
        eventbus.trigger_defer(name, *args)
        return self

    def trigger_sync(self, name: Any, *args: Any) -> Any:
        eventbus, _ = self._live()
        return eventbus.trigger_sync(name, *args)

    def trigger_async(self, name: Any, *args: Any) -> Awaitable[Any]:
        eventbus, _ = self._live()
        return eventbus.trigger_async(name, *args)

    # -- introspection ----------------------------------------------------------------

    @property
    def event_count(self) -> int:
        """Bindings on the target bus, including those not added through this proxy."""
        eventbus, _ = self._live()
        return eventbus.event_count

    @property
    def proxy_event_count(self) -> int:
        """Bindings this proxy currently holds on the target bus."""
        eventbus, proxy = self._live()
        listening = proxy._listening_to.get(id(eventbus))
        return listening.count if listening is not None else 0

    def get_event_names(self) -> list[str]:
        eventbus, _ = self._live()
        return eventbus.get_event_names()

    def get_proxy_event_names(self) -> list[str]:
        eventbus, proxy = self._live()
        listening = proxy._listening_to.get(id(eventbus))
        if listening is None:
            return []
        return eventbus._registry.names(owner=listening)

    def for_each_event(self, visitor: Visitor) -> None:
        eventbus, _ = self._live()
        eventbus.for_each_event(visitor)

    def for_each_proxy_event(self, visitor: Visitor) -> None:
        """Call visitor(name, callback, context) for each binding added through this proxy."""
        eventbus, proxy = self._live()
        if not callable(visitor):
            raise InvalidArgumentError("'visitor' is not callable.")
        listening = proxy._listening_to.get(id(eventbus))
        if listening is not None:
            eventbus._registry.for_each(visitor, owner=listening)

    def get_eventbus_name(self) -> str | None:
        eventbus, _ = self._live()
        return eventbus.get_eventbus_name()
