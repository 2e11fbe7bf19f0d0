import logging
from typing import Any

from quiesce.core.config import Config
from quiesce.core.lifecycle import ServerLifecycle
from quiesce.core.listener import AsyncioListener
from quiesce.core.model.state import ServerState
from quiesce.core.registry import ConnectionRegistry
from quiesce.core.types_ import RequestHandler, Listener, Completion


class Server:
    """
    A server whose ``shutdown`` cuts idle connections immediately and no
    longer keeps connections alive once their current request is done.

    ``listen``, ``shutdown`` and ``restart`` return completion objects
    (``asyncio.Future`` unless ``Config.completion`` says otherwise) that
    resolve with ``self.state``.
    """

    def __init__(
        self,
        app: RequestHandler,
        config: Config | None = None,
        listener: Listener[Any] | None = None,
    ) -> None:
        self.app = app
        self.config = config or Config()
        self.state = ServerState(
            config=self.config,
            listener=listener or AsyncioListener(app=app, config=self.config),
            registry=ConnectionRegistry(),
        )
        self._lifecycle = ServerLifecycle(self.state)
        self._logger = logging.getLogger("quiesce.core.server")

    @property
    def listener(self) -> Listener[Any]:
        return self.state.listener

    @property
    def registry(self) -> ConnectionRegistry:
        return self.state.registry

    @property
    def connection_count(self) -> int:
        return self.state.registry.size()

    @property
    def is_accepting(self) -> bool:
        return self.state.listener.is_accepting()

    def listen(self) -> Completion:
        return self._lifecycle.listen()

    def shutdown(self) -> Completion:
        return self._lifecycle.shutdown()

    def restart(self) -> Completion:
        return self._lifecycle.restart()
