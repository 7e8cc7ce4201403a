"""Recording listeners for bus tests."""

from __future__ import annotations

import asyncio
from typing import Any


class Recorder:
    """Callable listener that records each call and returns a fixed value."""

    def __init__(self, result: Any = None, *, log: list | None = None, label: str | None = None) -> None:
        self.result = result
        self.calls: list[tuple[Any, ...]] = []
        self._log = log
        self._label = label

    def __call__(self, *args: Any) -> Any:
        self.calls.append(args)
        if self._log is not None:
            self._log.append(self._label)
        return self.result

    @property
    def count(self) -> int:
        return len(self.calls)


class Raiser:
    """Listener that raises the given exception."""

    def __init__(self, exc: BaseException) -> None:
        self.exc = exc

    def __call__(self, *args: Any) -> Any:
        raise self.exc


def delayed(value: Any = None, *, delay: float = 0.01, error: BaseException | None = None):
    """Listener returning a coroutine that resolves (or fails) after delay."""

    async def _wait() -> Any:
        await asyncio.sleep(delay)
        if error is not None:
            raise error
        return value

    def listener(*args: Any) -> Any:
        return _wait()

    return listener
