import asyncio
import logging
from typing import Callable

from quiesce.core.config import Config
from quiesce.core.model.event import Event, HEADER
from quiesce.core.types_ import RequestHandler, Notify


class Connection(asyncio.Protocol):
    """
    One accepted client socket.

    Every length-prefixed msgpack frame is a request. Requests are served one
    at a time, in arrival order, and each one is bracketed by the
    request-started / request-finished notifications.
    """

    def __init__(
        self,
        app: RequestHandler,
        config: Config,
        on_made: Callable[["Connection"], None],
        tasks: set[asyncio.Task[None]],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._transport: asyncio.Transport = None   # type: ignore[assignment]

        self._app = app
        self._config = config
        self._on_made = on_made
        self._tasks = tasks
        self._loop = loop

        self._queue: asyncio.Queue[Event | None] = asyncio.Queue()
        self._buffer = bytearray()
        self._expected_length: int | None = None
        self._writable = asyncio.Event()
        self._writable.set()

        self._started: list[Notify] = []
        self._finished: list[Notify] = []
        self._closed: list[Notify] = []
        self.closed = False

        self._logger = logging.getLogger("quiesce.core.transport")

    def __repr__(self) -> str:
        peer = self._transport.get_extra_info("peername") if self._transport else None
        return f"<Connection peer={peer} closed={self.closed}>"

    def on_request_started(self, handler: Notify) -> None:
        self._started.append(handler)

    def on_request_finished(self, handler: Notify) -> None:
        self._finished.append(handler)

    def on_closed(self, handler: Notify) -> None:
        if self.closed:
            handler()
            return
        self._closed.append(handler)

    def destroy(self) -> None:
        if self._transport is not None:
            self._transport.abort()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]
        self._logger.debug(f"Connection made: {self!r}")

        task = self._loop.create_task(self._serve())
        task.add_done_callback(self._tasks.discard)
        self._tasks.add(task)

        self._on_made(self)

    def connection_lost(self, exc: Exception | None) -> None:
        if self.closed:
            return

        self.closed = True
        self._logger.debug(f"Connection lost: {self!r}")

        self._writable.set()
        if exc is None:
            self._transport.close()
        self._queue.put_nowait(None)

        self._notify(self._closed)

    def eof_received(self) -> None:
        pass

    def pause_writing(self) -> None:
        self._writable.clear()

    def resume_writing(self) -> None:
        self._writable.set()

    def data_received(self, data: bytes) -> None:
        self._buffer.extend(data)
        limit = self._config.max_buffer_size

        if len(self._buffer) > limit:
            self._logger.warning(f"{self!r} buffered more than {limit} bytes, destroying")
            self.destroy()
            return

        while (payload := self._next_payload()) is not None:
            try:
                event = Event.from_payload(payload)
            except Exception as exc:
                self._logger.warning(f"Dropping undecodable frame from {self!r}: {exc}")
                continue

            self._queue.put_nowait(event)

    def _next_payload(self) -> bytes | None:
        if self._expected_length is None:
            if len(self._buffer) < HEADER.size:
                return None

            (length,) = HEADER.unpack_from(self._buffer)
            del self._buffer[:HEADER.size]

            if length > self._config.max_buffer_size:
                self._logger.warning(f"{self!r} announced a {length} byte frame, destroying")
                self._buffer.clear()
                self.destroy()
                return None

            self._expected_length = length

        if len(self._buffer) < self._expected_length:
            return None

        payload = bytes(self._buffer[:self._expected_length])
        del self._buffer[:self._expected_length]
        self._expected_length = None
        return payload

    async def _serve(self) -> None:
        try:
            while True:
                event = await self._queue.get()
                if event is None:
                    break
                await self._handle(event)
        finally:
            self._transport.close()

    async def _handle(self, event: Event) -> None:
        self._notify(self._started)

        try:
            response = await self._app(event)
        except Exception as exc:
            self._logger.error(f"Error while handling '{event.type}'", exc_info=exc)
            response = Event(type="req.error", payload={"message": str(exc)})

        if response is not None:
            await self._send(response)

        self._notify(self._finished)

    async def _send(self, event: Event) -> None:
        if self.closed:
            self._logger.debug(f"Dropping '{event.type}' response, connection already closed")
            return

        await self._writable.wait()

        try:
            self._transport.write(event.to_frame())
        except Exception as exc:
            self._logger.error(f"Failed to send event: {exc}")
            self._transport.close()

    def _notify(self, handlers: list[Notify]) -> None:
        for handler in list(handlers):
            try:
                handler()
            except Exception as exc:
                self._logger.error("Connection notification handler failed", exc_info=exc)
