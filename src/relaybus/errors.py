"""Event bus exceptions."""

from __future__ import annotations


class EventbusError(Exception):
    """Base for event bus errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class InvalidArgumentError(EventbusError, TypeError):
    """Argument does not satisfy the expected contract (raised at the call site)."""


class ProxyDestroyedError(EventbusError, ReferenceError):
    """Operation on an EventProxy after destroy()."""


class EventbusConfigurationError(EventbusError):
    """Config validation or load failure."""
