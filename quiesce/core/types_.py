from typing import Protocol, Callable, Awaitable, Any, TypeVar

from quiesce.core.model.event import Event

RequestHandler = Callable[[Event], Awaitable[Event | None]]

Notify = Callable[[], None]

DoneCallback = Callable[[BaseException | None], None]


class Completion(Protocol):
    """
    Future-like object returned by listen/shutdown/restart.
    Both asyncio.Future and concurrent.futures.Future satisfy it.
    """

    def done(self) -> bool:
        ...

    def cancelled(self) -> bool:
        ...

    def cancel(self) -> bool:
        ...

    def result(self, *args: Any) -> Any:
        ...

    def exception(self, *args: Any) -> BaseException | None:
        ...

    def set_result(self, result: Any) -> None:
        ...

    def set_exception(self, exception: BaseException) -> None:
        ...

    def add_done_callback(self, fn: Callable[[Any], object], /) -> None:
        ...


CompletionFactory = Callable[[], Completion]


C = TypeVar("C")


class Listener(Protocol[C]):
    def on_connection_established(self, handler: Callable[[C], None]) -> Notify:
        ...

    def on_connection_closed(self, connection: C, handler: Notify) -> None:
        ...

    def on_request_started(self, connection: C, handler: Notify) -> None:
        ...

    def on_request_finished(self, connection: C, handler: Notify) -> None:
        ...

    def is_accepting(self) -> bool:
        ...

    def stop_accepting_and_close(self, on_done: DoneCallback) -> None:
        ...

    def bind(self, host: str, port: int, on_done: DoneCallback) -> None:
        ...

    def destroy(self, connection: C) -> None:
        ...
