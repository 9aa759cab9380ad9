"""View-scoped event bus.

Replaces ambient broadcast state: a view subscribes when it opens and
drops its subscriptions when it closes, so nothing outlives the view.
"""

import inspect
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

import structlog

logger = structlog.get_logger()


class ViewEvent(str, Enum):
    REFETCH_REQUESTED = "refetch_requested"
    FILTERS_CLEARED = "filters_cleared"


Handler = Callable[[ViewEvent, Mapping[str, Any]], "Awaitable[None] | None"]


class ViewEventBus:
    def __init__(self) -> None:
        self._handlers: dict[ViewEvent, list[Handler]] = defaultdict(list)

    def subscribe(self, event: ViewEvent, handler: Handler) -> Callable[[], None]:
        """Register ``handler``; the returned callable removes it again."""
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def subscriber_count(self, event: ViewEvent) -> int:
        return len(self._handlers[event])

    async def publish(self, event: ViewEvent, payload: Mapping[str, Any] | None = None) -> int:
        """Deliver ``event`` to current subscribers in registration order.

        A failing handler is logged and does not stop delivery to the rest.
        Returns the number of handlers that ran successfully.
        """
        delivered = 0
        for handler in list(self._handlers[event]):
            try:
                result = handler(event, payload or {})
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                logger.exception("view_event_handler_failed", view_event=event.value)
        return delivered
