"""Typed in-process event bus for notifying callers about side effects."""

import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CreditsDebited:
    """Published after a successful credit debit."""

    user_id: str
    amount: float
    new_balance: float
    source: str


EventHandler = Callable[[Any], Awaitable[None] | None]


class EventBus:
    """Dispatches events to handlers subscribed by event type.

    Handler failures are logged and never reach the publisher.
    """

    def __init__(self):
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` and return a function that removes it."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    async def publish(self, event: Any) -> None:
        for handler in list(self._handlers.get(type(event), [])):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Event handler for {type(event).__name__} failed: {e}", exc_info=True)
