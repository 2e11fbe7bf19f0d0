import functools
import logging
from typing import Any

from quiesce.core.model.state import ServerState


class ConnectionTracker:
    """
    Keeps the registry in step with the listener's notifications.

    connection established  -> register (idle)
    request started         -> active
    request finished        -> idle, destroyed right away when no longer accepting
    connection closed       -> removed, whatever the cause
    """

    def __init__(self, state: ServerState) -> None:
        self._state = state
        self._listener = state.listener
        self._registry = state.registry
        self._logger = logging.getLogger("quiesce.core.tracker")

    def attach(self) -> None:
        if self._state.wiring is not None:
            return
        self._state.wiring = self._listener.on_connection_established(self.connection_established)

    def detach(self) -> None:
        wiring, self._state.wiring = self._state.wiring, None
        if wiring is not None:
            wiring()

    def connection_established(self, connection: Any) -> str:
        identity = self._registry.register(connection)

        self._listener.on_request_started(
            connection, functools.partial(self.request_started, identity)
        )
        self._listener.on_request_finished(
            connection, functools.partial(self.request_finished, identity, connection)
        )
        self._listener.on_connection_closed(
            connection, functools.partial(self.connection_closed, identity)
        )

        self._logger.debug(f"Connection established: {identity}")
        return identity

    def request_started(self, identity: str) -> None:
        self._registry.mark_active(identity)

    def request_finished(self, identity: str, connection: Any) -> None:
        self._registry.mark_idle(identity)

        if not self._listener.is_accepting():
            self._logger.debug(f"Request finished while shutting down, destroying {identity}")
            try:
                self._listener.destroy(connection)
            except Exception as exc:
                self._logger.debug(f"Destroy failed for {identity}: {exc}")
            self._registry.remove(identity)

    def connection_closed(self, identity: str) -> None:
        self._registry.remove(identity)
        self._logger.debug(f"Connection closed: {identity}")
