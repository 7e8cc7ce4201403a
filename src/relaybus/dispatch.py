"""Name resolution and trigger strategies shared by every bus operation.

Names accepted anywhere a bus takes an event name:

* ``"change"``: a single event name.
* ``"change blur"``: several names separated by whitespace; each one is visited
  with the same callback and context.
* ``{"change": on_change, "blur": on_blur}``: a mapping of name to callback. A
  callback passed alongside the mapping is used as the shared context.

Listeners registered under ``"all"`` are invoked for every trigger with the event
name prepended to the arguments.
"""

from __future__ import annotations

import asyncio
import inspect
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

from relaybus.errors import InvalidArgumentError
from relaybus.registry import Binding, EventRegistry

ALL_EVENTS = "all"

EVENT_SPLITTER = re.compile(r"\s+")

T = TypeVar("T")

Visit = Callable[[Any, Any, Any], T]


def resolve(visit: Visit[T], name: Any, callback: Any = None, context: Any = None) -> list[T]:
    """Expand name into single event names and call visit(name, callback, context) for each.

    Returns the outcome of every visit in order.
    """
    outcomes: list[T] = []
    if isinstance(name, Mapping):
        if callback is not None and context is None:
            context = callback
        for key, value in name.items():
            outcomes.extend(resolve(visit, key, value, context))
    elif isinstance(name, str) and EVENT_SPLITTER.search(name):
        for token in EVENT_SPLITTER.split(name):
            if token:
                outcomes.append(visit(token, callback, context))
    elif name is None or isinstance(name, str):
        outcomes.append(visit(name, callback, context))
    else:
        raise InvalidArgumentError(
            f"Event name must be a str or a mapping, not {type(name).__name__}.",
            details={"name": name},
        )
    return outcomes


def _targets(registry: EventRegistry, name: str | None, args: tuple[Any, ...]) -> list[tuple[Sequence[Binding], tuple[Any, ...]]]:
    """Binding snapshots to invoke for name, with the arguments each group receives."""
    if name is None:
        return []
    targets = []
    bindings = registry.get(name)
    if bindings:
        targets.append((bindings, args))
    all_bindings = registry.get(ALL_EVENTS)
    if all_bindings:
        targets.append((all_bindings, (name, *args)))
    return targets


# -- invocation ------------------------------------------------------------------
# Arities 0-3 are unrolled; the generic versions are the reference behaviour.


def invoke_bindings(bindings: Sequence[Binding], args: Sequence[Any]) -> None:
    """Invoke every binding's handler in order, discarding return values."""
    count = len(args)
    if count == 0:
        for binding in bindings:
            binding.handler()
    elif count == 1:
        a1 = args[0]
        for binding in bindings:
            binding.handler(a1)
    elif count == 2:
        a1, a2 = args
        for binding in bindings:
            binding.handler(a1, a2)
    elif count == 3:
        a1, a2, a3 = args
        for binding in bindings:
            binding.handler(a1, a2, a3)
    else:
        for binding in bindings:
            binding.handler(*args)


def invoke_bindings_generic(bindings: Sequence[Binding], args: Sequence[Any]) -> None:
    for binding in bindings:
        binding.handler(*args)


def collect_results(bindings: Sequence[Binding], args: Sequence[Any], results: list[Any]) -> list[Any]:
    """Invoke bindings in order, appending each non-None return value to results.

    results is filled in place so callers still see what was collected when a
    handler raises.
    """
    count = len(args)
    if count == 0:
        for binding in bindings:
            result = binding.handler()
            if result is not None:
                results.append(result)
    elif count == 1:
        a1 = args[0]
        for binding in bindings:
            result = binding.handler(a1)
            if result is not None:
                results.append(result)
    elif count == 2:
        a1, a2 = args
        for binding in bindings:
            result = binding.handler(a1, a2)
            if result is not None:
                results.append(result)
    elif count == 3:
        a1, a2, a3 = args
        for binding in bindings:
            result = binding.handler(a1, a2, a3)
            if result is not None:
                results.append(result)
    else:
        for binding in bindings:
            result = binding.handler(*args)
            if result is not None:
                results.append(result)
    return results


def collect_results_generic(bindings: Sequence[Binding], args: Sequence[Any], results: list[Any]) -> list[Any]:
    for binding in bindings:
        result = binding.handler(*args)
        if result is not None:
            results.append(result)
    return results


# -- trigger strategies ------------------------------------------------------------


def fire(registry: EventRegistry, name: str | None, args: tuple[Any, ...]) -> None:
    """Fire-and-forget: listener exceptions propagate to the caller."""
    for bindings, call_args in _targets(registry, name, args):
        invoke_bindings(bindings, call_args)


def _unwrap(results: list[Any]) -> Any:
    if not results:
        return None
    if len(results) == 1:
        return results[0]
    return results


def collect_sync(registry: EventRegistry, name: str | None, args: tuple[Any, ...]) -> Any:
    """Return None, the single collected value, or the list of collected values.

    Awaitables returned by listeners are passed through untouched.
    """
    results: list[Any] = []
    for bindings, call_args in _targets(registry, name, args):
        collect_results(bindings, call_args, results)
    return _unwrap(results)


def collect_async(registry: EventRegistry, name: str | None, args: tuple[Any, ...]) -> Awaitable[Any]:
    """Invoke listeners now and return an awaitable for the settled results.

    One collected value resolves to that value (awaited if it is awaitable); two or
    more resolve to the ordered list once all have settled. A synchronous listener
    error or any failed awaitable makes the returned awaitable raise.
    """
    results: list[Any] = []
    try:
        for bindings, call_args in _targets(registry, name, args):
            collect_results(bindings, call_args, results)
    except Exception as exc:
        _close_pending(results)
        return _raise(exc)
    return settle(results)


async def settle(results: list[Any]) -> Any:
    if not results:
        return None
    if len(results) == 1:
        return await _ensure_awaitable(results[0])
    return list(await asyncio.gather(*(_ensure_awaitable(result) for result in results)))


async def settle_last(outcomes: Sequence[Awaitable[Any]]) -> Any:
    """Wait for every per-name outcome; resolve to the last one."""
    if not outcomes:
        return None
    settled = await asyncio.gather(*outcomes)
    return settled[-1]


def _ensure_awaitable(value: Any) -> Awaitable[Any]:
    if inspect.isawaitable(value):
        return value
    return _resolved(value)


async def _resolved(value: Any) -> Any:
    return value


async def _raise(exc: BaseException) -> Any:
    raise exc


def _close_pending(results: list[Any]) -> None:
    for result in results:
        if inspect.iscoroutine(result):
            result.close()
