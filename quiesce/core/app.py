import logging
import uuid
from typing import Callable

from quiesce.core.model.event import Event
from quiesce.core.router import Router, RouteHandler


class App:
    """Request callback dispatching each event to the handler of its type."""

    def __init__(self) -> None:
        self.router = Router()
        self._logger = logging.getLogger("quiesce.core.app")

    async def __call__(self, event: Event) -> Event | None:
        handler = self.router.resolve(event.type)

        if handler is None:
            msg = f"Unknown event type '{event.type}'"
            return Event(type="req.error", payload={"message": msg})

        try:
            data = dict(event.payload)
            data.setdefault("request_id", str(uuid.uuid4()))
            return await handler(data)
        except Exception as exc:
            self._logger.error(f"Error in handler '{event.type}': {exc}", exc_info=exc)
            return Event(type="req.error", payload={"message": str(exc)})

    def request(self, event_type: str) -> Callable[[RouteHandler], RouteHandler]:
        return self.router.request(event_type)
