import logging
from typing import Callable, Awaitable, Mapping, Any

from quiesce.core.model.event import Event

RouteHandler = Callable[[Mapping[str, Any]], Awaitable[Event | None]]


class Router:
    def __init__(self) -> None:
        self._routes: dict[str, RouteHandler] = {}
        self._logger = logging.getLogger("quiesce.core.router")

    def add_route(self, event_type: str, handler: RouteHandler) -> None:
        if event_type in self._routes:
            raise RuntimeError(f"Handler already registered for '{event_type}'")
        self._routes[event_type] = handler
        self._logger.debug(f"Route registered: '{event_type}' -> {handler.__qualname__}")

    def request(self, event_type: str) -> Callable[[RouteHandler], RouteHandler]:
        def decorator(func: RouteHandler) -> RouteHandler:
            self.add_route(event_type, func)
            return func

        return decorator

    def resolve(self, event_type: str) -> RouteHandler | None:
        return self._routes.get(event_type)

    def routes(self) -> dict[str, RouteHandler]:
        return dict(self._routes)
