"""EventBus: registration, trigger variants and cross-bus listening."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from loguru import logger

from relaybus import dispatch
from relaybus.errors import InvalidArgumentError
from relaybus.registry import Binding, EventRegistry, Visitor

if TYPE_CHECKING:
    from relaybus.proxy import EventProxy


@dataclass(eq=False)
class Listening:
    """Bindings one bus (listener) holds on another bus (target)."""

    listener: EventBus
    target: EventBus
    count: int = 0

    def release(self) -> None:
        """Drop one binding; forget the record once none are left."""
        self.count -= 1
        if self.count <= 0 and self.listener._listening_to.get(id(self.target)) is self:
            del self.listener._listening_to[id(self.target)]


class _OnceHandler:
    """Removes its binding, then runs the callback. Never runs twice."""

    __slots__ = ("_binding", "_bus", "_fired", "_name")

    def __init__(self, bus: EventBus, name: str, binding: Binding) -> None:
        self._bus = bus
        self._name = name
        self._binding = binding
        self._fired = False

    def __call__(self, *args: Any) -> Any:
        if self._fired:
            return None
        self._fired = True
        self._bus._discard(self._name, self._binding)
        return self._binding.callback(*args)


class EventBus:
    """In-process event bus.

    Listeners are invoked synchronously in registration order. ``trigger_sync`` and
    ``trigger_async`` collect listener return values; ``trigger_defer`` runs
    ``trigger`` on a later turn of the running asyncio loop.
    """

    def __init__(self, eventbus_name: str | None = None) -> None:
        self._registry = EventRegistry()
        self._listening_to: dict[int, Listening] = {}
        self._eventbus_name = eventbus_name

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self._eventbus_name!r} events={self.event_count}>"

    # -- registration ---------------------------------------------------------------

    def on(self, name: Any, callback: Callable[..., Any] | None = None, context: Any = None) -> EventBus:
        """Bind callback to the event name(s). Space-separated names and name maps are accepted."""
        dispatch.resolve(self._add, name, callback, context)
        return self

    def once(self, name: Any, callback: Callable[..., Any] | None = None, context: Any = None) -> EventBus:
        """Like on(), but each resolved name fires the callback at most once."""
        dispatch.resolve(self._add_once, name, callback, context)
        return self

    def off(self, name: Any = None, callback: Any = None, context: Any = None) -> EventBus:
        """Remove bindings matching the given filters. No arguments removes everything."""
        if name is None and callback is None and context is None:
            self._release(self._registry.remove())
            return self
        dispatch.resolve(self._remove, name, callback, context)
        return self

    def _add(self, name: str, callback: Callable[..., Any] | None, context: Any, owner: Listening | None = None) -> Binding | None:
        if callback is None:
            return None
        binding = self._registry.add(name, callback, context, owner)
        if owner is not None:
            owner.count += 1
        return binding

    def _add_once(self, name: str, callback: Callable[..., Any] | None, context: Any, owner: Listening | None = None) -> Binding | None:
        binding = self._add(name, callback, context, owner)
        if binding is not None:
            binding.handler = _OnceHandler(self, name, binding)
        return binding

    def _remove(self, name: str | None, callback: Any, context: Any, owner: Listening | None = None) -> None:
        self._release(self._registry.remove(name, callback, context, owner))

    def _discard(self, name: str, binding: Binding) -> None:
        if self._registry.discard(name, binding):
            self._release([binding])

    @staticmethod
    def _release(bindings: list[Binding]) -> None:
        for binding in bindings:
            if binding.owner is not None:
                binding.owner.release()

    # -- cross-bus listening ----------------------------------------------------------

    def listen_to(self, target: EventBus, name: Any, callback: Callable[..., Any] | None = None, context: Any = None) -> EventBus:
        """Bind callback on target and remember it so stop_listening() can revoke it."""
        listening = self._listening_for(target)
        try:
            dispatch.resolve(partial(target._add, owner=listening), name, callback, context)
        finally:
            self._forget_if_unused(listening)
        logger.debug("{} listening to {} on {} ({} bindings)", self, name, target, listening.count)
        return self

    def listen_to_once(self, target: EventBus, name: Any, callback: Callable[..., Any] | None = None, context: Any = None) -> EventBus:
        """Like listen_to(), but each resolved name fires at most once."""
        listening = self._listening_for(target)
        try:
            dispatch.resolve(partial(target._add_once, owner=listening), name, callback, context)
        finally:
            self._forget_if_unused(listening)
        return self

    def stop_listening(self, target: EventBus | None = None, name: Any = None, callback: Any = None, context: Any = None) -> EventBus:
        """Revoke bindings this bus made on other buses. Unset arguments match everything."""
        if target is None:
            records = list(self._listening_to.values())
        else:
            record = self._listening_to.get(id(target))
            records = [record] if record is not None else []

        for listening in records:
            before = listening.count
            dispatch.resolve(partial(listening.target._remove, owner=listening), name, callback, context)
            logger.debug("{} stopped listening to {} ({} bindings removed)", self, listening.target, before - listening.count)
        return self

    def _listening_for(self, target: EventBus) -> Listening:
        if not isinstance(target, EventBus):
            raise InvalidArgumentError(
                f"'target' is not an instance of EventBus: {type(target).__name__}.",
                details={"target": target},
            )
        listening = self._listening_to.get(id(target))
        if listening is None:
            listening = Listening(listener=self, target=target)
            self._listening_to[id(target)] = listening
        return listening

    def _forget_if_unused(self, listening: Listening) -> None:
        if listening.count <= 0:
            self._listening_to.pop(id(listening.target), None)

    # -- triggering -------------------------------------------------------------------

    def trigger(self, name: Any, *args: Any) -> EventBus:
        """Invoke matching listeners now. Return values are ignored; errors propagate."""
        dispatch.resolve(lambda single, _cb, _ctx: dispatch.fire(self._registry, single, args), name)
        return self

    def trigger_defer(self, name: Any, *args: Any) -> EventBus:
        """Run trigger() on a later turn of the running event loop."""
        loop = asyncio.get_running_loop()
        loop.call_soon(self._deferred_trigger, name, args)
        return self

    def _deferred_trigger(self, name: Any, args: tuple[Any, ...]) -> None:
        try:
            self.trigger(name, *args)
        except Exception:
            logger.exception("Deferred trigger of {!r} on {} failed", name, self)
            raise

    def trigger_sync(self, name: Any, *args: Any) -> Any:
        """Invoke matching listeners and return None, the single result, or a list of results."""
        outcomes = dispatch.resolve(lambda single, _cb, _ctx: dispatch.collect_sync(self._registry, single, args), name)
        return outcomes[-1] if outcomes else None

    def trigger_async(self, name: Any, *args: Any) -> Awaitable[Any]:
        """Invoke matching listeners now; return an awaitable of their settled results."""
        outcomes = dispatch.resolve(lambda single, _cb, _ctx: dispatch.collect_async(self._registry, single, args), name)
        if len(outcomes) == 1:
            return outcomes[0]
        return dispatch.settle_last(outcomes)

    # -- introspection ----------------------------------------------------------------

    @property
    def event_count(self) -> int:
        return self._registry.count()

    def get_event_names(self) -> list[str]:
        return self._registry.names()

    def for_each_event(self, visitor: Visitor) -> None:
        """Call visitor(name, callback, context) for every binding."""
        self._registry.for_each(visitor)

    def get_eventbus_name(self) -> str | None:
        return self._eventbus_name

    def set_eventbus_name(self, name: str | None) -> EventBus:
        self._eventbus_name = name
        return self

    def create_event_proxy(self) -> EventProxy:
        """Return an EventProxy whose listeners can all be removed with destroy()."""
        from relaybus.proxy import EventProxy

        return EventProxy(self)
