"""Event registry: event name -> ordered bindings."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from relaybus.errors import InvalidArgumentError

Visitor = Callable[[str, Callable[..., Any], Any], Any]


@dataclass(eq=False)
class Binding:
    """One listener registration under one event name."""

    callback: Callable[..., Any]
    context: Any = None
    owner: Any = None  # Listening record when added through listen_to
    handler: Callable[..., Any] | None = None  # what dispatch invokes

    def __post_init__(self) -> None:
        if self.handler is None:
            self.handler = self.callback

    def matches(self, callback: Any = None, context: Any = None, owner: Any = None) -> bool:
        """True when every filter that is set matches this binding."""
        if callback is not None and callback != self.callback:
            return False
        if context is not None and context is not self.context:
            return False
        if owner is not None and owner is not self.owner:
            return False
        return True


class EventRegistry:
    """Ordered mapping of event name to bindings. Empty names are never kept."""

    def __init__(self) -> None:
        self._events: dict[str, list[Binding]] = {}

    def add(
        self,
        name: str,
        callback: Callable[..., Any],
        context: Any = None,
        owner: Any = None,
    ) -> Binding:
        """Append a binding for name. Duplicates are kept."""
        binding = Binding(callback, context, owner)
        self._events.setdefault(name, []).append(binding)
        return binding

    def remove(
        self,
        name: str | None = None,
        callback: Any = None,
        context: Any = None,
        owner: Any = None,
    ) -> list[Binding]:
        """Remove bindings matching every filter given; no filters clears everything.

        Returns the removed bindings in visit order.
        """
        if name is None and callback is None and context is None and owner is None:
            removed = [binding for _, binding in self]
            self._events.clear()
            return removed

        names = [name] if name is not None else list(self._events)
        removed = []
        for key in names:
            bindings = self._events.get(key)
            if not bindings:
                continue
            kept = []
            for binding in bindings:
                if binding.matches(callback, context, owner):
                    removed.append(binding)
                else:
                    kept.append(binding)
            # Replace rather than mutate so in-flight dispatch snapshots stay intact.
            if kept:
                self._events[key] = kept
            else:
                del self._events[key]
        return removed

    def discard(self, name: str, binding: Binding) -> bool:
        """Remove exactly this binding object. Returns False if it is already gone."""
        bindings = self._events.get(name)
        if not bindings or not any(b is binding for b in bindings):
            return False
        kept = [b for b in bindings if b is not binding]
        if kept:
            self._events[name] = kept
        else:
            del self._events[name]
        return True

    def get(self, name: str) -> tuple[Binding, ...]:
        """Snapshot of the bindings for name."""
        return tuple(self._events.get(name, ()))

    def count(self, owner: Any = None) -> int:
        if owner is None:
            return sum(len(bindings) for bindings in self._events.values())
        return sum(1 for _, binding in self if binding.owner is owner)

    def names(self, owner: Any = None) -> list[str]:
        """Event names in first-seen order, optionally only those holding owner's bindings."""
        if owner is None:
            return list(self._events)
        return [name for name, bindings in self._events.items() if any(b.owner is owner for b in bindings)]

    def for_each(self, visitor: Visitor, owner: Any = None) -> None:
        """Call visitor(name, callback, context) for each binding in visit order."""
        if not callable(visitor):
            raise InvalidArgumentError("'visitor' is not callable.")
        for name, binding in self:
            if owner is None or binding.owner is owner:
                visitor(name, binding.callback, binding.context)

    def __iter__(self) -> Iterator[tuple[str, Binding]]:
        for name, bindings in list(self._events.items()):
            for binding in list(bindings):
                yield name, binding

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, name: object) -> bool:
        return name in self._events
