"""Process-wide default event bus.

``main_eventbus`` is created at import and lives for the whole process; it is never
torn down. Call ``init_main_eventbus`` once at startup to apply configuration. Code that
needs isolation should create its own EventBus and pass it around explicitly.
"""

from __future__ import annotations

from loguru import logger

from relaybus.bus import EventBus
from relaybus.config import DEFAULT_EVENTBUS_NAME, Config, cfg

main_eventbus = EventBus(DEFAULT_EVENTBUS_NAME)

_initialized = False


def init_main_eventbus(config: Config | None = None) -> EventBus:
    """Name the main bus from config. Only the first call has any effect."""
    global _initialized

    config = config or cfg
    if _initialized:
        if config.eventbus_name != main_eventbus.get_eventbus_name():
            logger.warning(
                "Main event bus already initialized as {}; ignoring name {}",
                main_eventbus.get_eventbus_name(),
                config.eventbus_name,
            )
        return main_eventbus

    main_eventbus.set_eventbus_name(config.eventbus_name)
    _initialized = True
    logger.debug("Main event bus initialized: {}", config.eventbus_name)
    return main_eventbus
