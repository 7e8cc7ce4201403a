"""Test name resolution and trigger strategies."""

import asyncio

import pytest

from relaybus import dispatch
from relaybus.errors import InvalidArgumentError
from relaybus.registry import EventRegistry
from tests.helpers import Raiser, Recorder, delayed


def visit_record(name, callback, context):
    return (name, callback, context)


class TestResolve:
    """Test expansion of event name arguments."""

    def test_single_name(self):
        assert dispatch.resolve(visit_record, "a", "cb", "ctx") == [("a", "cb", "ctx")]

    def test_space_separated_names(self):
        assert dispatch.resolve(visit_record, "a b\tc", "cb") == [
            ("a", "cb", None),
            ("b", "cb", None),
            ("c", "cb", None),
        ]

    def test_runs_of_whitespace_and_edges_skip_empty_tokens(self):
        outcomes = dispatch.resolve(visit_record, "  a   b  ", "cb")
        assert [name for name, _, _ in outcomes] == ["a", "b"]

    def test_name_map_expands_each_entry(self):
        outcomes = dispatch.resolve(visit_record, {"a": "cb1", "b c": "cb2"})
        assert outcomes == [("a", "cb1", None), ("b", "cb2", None), ("c", "cb2", None)]

    def test_name_map_adopts_callback_as_context(self):
        ctx = object()
        outcomes = dispatch.resolve(visit_record, {"a": "cb1"}, ctx)
        assert outcomes == [("a", "cb1", ctx)]

    def test_name_map_keeps_explicit_context(self):
        ctx, other = object(), object()
        outcomes = dispatch.resolve(visit_record, {"a": "cb1"}, other, ctx)
        assert outcomes == [("a", "cb1", ctx)]

    def test_none_name_is_visited(self):
        assert dispatch.resolve(visit_record, None) == [(None, None, None)]

    def test_invalid_name_type(self):
        with pytest.raises(InvalidArgumentError):
            dispatch.resolve(visit_record, 42)


class TestInvokeBindings:
    """Test fast-path invocation helpers."""

    @pytest.mark.parametrize("args", [(), (1,), (1, 2), (1, 2, 3), (1, 2, 3, 4)])
    def test_every_arity_passes_arguments(self, args):
        registry = EventRegistry()
        recorder = Recorder()
        registry.add("a", recorder)
        registry.add("a", recorder)

        dispatch.invoke_bindings(registry.get("a"), args)

        assert recorder.calls == [args, args]

    def test_collect_results_drops_none(self):
        registry = EventRegistry()
        registry.add("a", Recorder("x"))
        registry.add("a", Recorder(None))
        registry.add("a", Recorder(0))

        assert dispatch.collect_results(registry.get("a"), (), []) == ["x", 0]

    def test_collect_results_keeps_partial_results_on_error(self):
        registry = EventRegistry()
        registry.add("a", Recorder("x"))
        registry.add("a", Raiser(ValueError("boom")))
        results = []

        with pytest.raises(ValueError):
            dispatch.collect_results(registry.get("a"), (1,), results)

        assert results == ["x"]


class TestStrategies:
    """Test fire / collect_sync / collect_async against a registry."""

    def test_all_listeners_receive_event_name(self):
        registry = EventRegistry()
        named, wildcard = Recorder(), Recorder()
        registry.add("a", named)
        registry.add(dispatch.ALL_EVENTS, wildcard)

        dispatch.fire(registry, "a", (1, 2))

        assert named.calls == [(1, 2)]
        assert wildcard.calls == [("a", 1, 2)]

    def test_all_listeners_fire_without_named_listeners(self):
        registry = EventRegistry()
        wildcard = Recorder()
        registry.add(dispatch.ALL_EVENTS, wildcard)

        dispatch.fire(registry, "unbound", ())

        assert wildcard.calls == [("unbound",)]

    def test_collect_sync_includes_all_listeners_after_named(self):
        registry = EventRegistry()
        registry.add(dispatch.ALL_EVENTS, Recorder("all"))
        registry.add("a", Recorder("named"))

        assert dispatch.collect_sync(registry, "a", ()) == ["named", "all"]

    def test_collect_sync_unwraps(self):
        registry = EventRegistry()
        assert dispatch.collect_sync(registry, "a", ()) is None
        registry.add("a", Recorder("foo"))
        assert dispatch.collect_sync(registry, "a", ()) == "foo"

    def test_fire_none_name_is_noop(self):
        registry = EventRegistry()
        recorder = Recorder()
        registry.add(dispatch.ALL_EVENTS, recorder)
        dispatch.fire(registry, None, ())
        assert recorder.count == 0

    @pytest.mark.asyncio
    async def test_collect_async_awaits_single_awaitable(self):
        registry = EventRegistry()
        registry.add("a", delayed("later"))

        assert await dispatch.collect_async(registry, "a", ()) == "later"

    @pytest.mark.asyncio
    async def test_collect_async_gathers_mixed_values(self):
        registry = EventRegistry()
        registry.add("a", Recorder("now"))
        registry.add("a", delayed("later"))

        assert await dispatch.collect_async(registry, "a", ()) == ["now", "later"]

    @pytest.mark.asyncio
    async def test_collect_async_accepts_futures(self):
        registry = EventRegistry()
        future = asyncio.get_running_loop().create_future()
        future.set_result("done")
        registry.add("a", lambda: future)
        registry.add("a", Recorder("now"))

        assert await dispatch.collect_async(registry, "a", ()) == ["done", "now"]

    @pytest.mark.asyncio
    async def test_collect_async_sync_error_closes_pending_coroutines(self):
        registry = EventRegistry()
        created = []

        async def pending():
            return "never"

        def make_pending():
            coro = pending()
            created.append(coro)
            return coro

        registry.add("a", make_pending)
        registry.add("a", Raiser(RuntimeError("sync")))

        awaitable = dispatch.collect_async(registry, "a", ())

        with pytest.raises(RuntimeError, match="sync"):
            await awaitable
        assert created[0].cr_frame is None

    @pytest.mark.asyncio
    async def test_settle_last_returns_last_outcome(self):
        async def value(v):
            return v

        assert await dispatch.settle_last([value(1), value(2)]) == 2
        assert await dispatch.settle_last([]) is None
