import asyncio
import logging
from typing import Callable

from quiesce.core.config import Config
from quiesce.core.protocol import Connection
from quiesce.core.types_ import RequestHandler, Notify, DoneCallback


class AsyncioListener:
    """Listener backed by ``loop.create_server``."""

    def __init__(self, app: RequestHandler, config: Config) -> None:
        self._app = app
        self._config = config
        self._server: asyncio.Server | None = None
        self._established: list[Callable[[Connection], None]] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._logger = logging.getLogger("quiesce.core.listener")

    @property
    def tasks(self) -> set[asyncio.Task[None]]:
        return set(self._tasks)

    @property
    def addresses(self) -> list[tuple[str, int]]:
        if self._server is None:
            return []
        return [sock.getsockname()[:2] for sock in self._server.sockets]

    def on_connection_established(self, handler: Callable[[Connection], None]) -> Notify:
        self._established.append(handler)

        def unsubscribe() -> None:
            if handler in self._established:
                self._established.remove(handler)

        return unsubscribe

    def on_connection_closed(self, connection: Connection, handler: Notify) -> None:
        connection.on_closed(handler)

    def on_request_started(self, connection: Connection, handler: Notify) -> None:
        connection.on_request_started(handler)

    def on_request_finished(self, connection: Connection, handler: Notify) -> None:
        connection.on_request_finished(handler)

    def is_accepting(self) -> bool:
        return self._server is not None and self._server.is_serving()

    def bind(self, host: str, port: int, on_done: DoneCallback) -> None:
        loop = self._config.loop or asyncio.get_running_loop()

        def bound(task: asyncio.Task[asyncio.Server]) -> None:
            if task.cancelled():
                on_done(asyncio.CancelledError())
                return

            exc = task.exception()
            if exc is not None:
                on_done(exc)
                return

            self._server = task.result()
            on_done(None)

        task = loop.create_task(
            loop.create_server(
                lambda: self._create_protocol(loop),
                host=host,
                port=port,
                backlog=self._config.backlog,
            )
        )
        task.add_done_callback(bound)

    def stop_accepting_and_close(self, on_done: DoneCallback) -> None:
        server, self._server = self._server, None
        if server is None:
            on_done(None)
            return

        server.close()

        loop = self._config.loop or asyncio.get_running_loop()
        task = loop.create_task(self._close(server))
        task.add_done_callback(
            lambda t: on_done(asyncio.CancelledError() if t.cancelled() else t.exception())
        )

    async def _close(self, server: asyncio.Server) -> None:
        # Connections are already destroyed; their handlers have nobody to answer
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            self._logger.debug(f"Cancelled {len(pending)} connection task(s)")
            await asyncio.gather(*pending, return_exceptions=True)

        await server.wait_closed()

    def destroy(self, connection: Connection) -> None:
        connection.destroy()

    def _create_protocol(self, loop: asyncio.AbstractEventLoop) -> Connection:
        return Connection(
            app=self._app,
            config=self._config,
            on_made=self._connection_made,
            tasks=self._tasks,
            loop=loop,
        )

    def _connection_made(self, connection: Connection) -> None:
        # Accepted by the kernel but surfaced after stop_accepting_and_close
        if not self.is_accepting():
            self._logger.debug(f"Rejecting {connection!r}, listener is closed")
            connection.destroy()
            return

        for handler in list(self._established):
            try:
                handler(connection)
            except Exception as exc:
                self._logger.error("Connection established handler failed", exc_info=exc)
