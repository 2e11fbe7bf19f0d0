import logging
from typing import Any

from quiesce.core.exception import BindError
from quiesce.core.model.state import ServerState
from quiesce.core.tracker import ConnectionTracker
from quiesce.core.types_ import Completion


class ServerLifecycle:
    """
    Drives the listener between its accepting and closed states.

    Every operation returns a completion object built by the configured
    completion factory and resolved with the ``ServerState``. Calling an
    operation that finds the listener already in the requested state resolves
    right away.
    """

    def __init__(self, state: ServerState) -> None:
        self._state = state
        self._tracker = ConnectionTracker(state)
        self._binding: Completion | None = None
        self._logger = logging.getLogger("quiesce.core.lifecycle")

    @property
    def tracker(self) -> ConnectionTracker:
        return self._tracker

    def listen(self) -> Completion:
        state = self._state
        completion = state.config.create_completion()

        if state.listener.is_accepting():
            _resolve(completion, state)
            return completion

        binding = self._binding if self._binding is not None else self._bind()
        binding.add_done_callback(lambda bound: _transfer(bound, completion))
        return completion

    def _bind(self) -> Completion:
        state = self._state
        binding = state.config.create_completion()
        host, port = state.config.host, state.config.port
        self._tracker.attach()
        self._binding = binding

        def on_bound(exc: BaseException | None) -> None:
            if self._binding is binding:
                self._binding = None

            if exc is not None:
                self._logger.error(f"Failed to bind '{host}:{port}': {exc}")
                error = BindError(host, port)
                error.__cause__ = exc
                _reject(binding, error)
                return

            self._logger.info(f"Listening on '{host}:{port}'")
            _resolve(binding, state)

        try:
            state.listener.bind(host, port, on_bound)
        except Exception as exc:
            on_bound(exc)

        return binding

    def shutdown(self) -> Completion:
        state = self._state
        completion = state.config.create_completion()

        if not state.listener.is_accepting():
            self._logger.debug("Shutdown requested while not accepting, nothing to do")
            _resolve(completion, state)
            return completion

        connections = state.registry.drain_all()
        if connections:
            self._logger.info(f"Destroying {len(connections)} tracked connection(s)")

        for connection in connections:
            self._destroy(connection)

        def on_closed(exc: BaseException | None) -> None:
            if exc is not None:
                self._logger.warning(f"Listener close reported an error, ignored: {exc}")
            self._logger.info("Listener closed")
            _resolve(completion, state)

        try:
            state.listener.stop_accepting_and_close(on_closed)
        except Exception as exc:
            on_closed(exc)

        return completion

    def restart(self) -> Completion:
        completion = self._state.config.create_completion()

        def after_shutdown(stopped: Completion) -> None:
            if stopped.cancelled() or stopped.exception() is not None:
                _transfer(stopped, completion)
                return

            self._logger.info("Listener stopped, binding again")
            try:
                started = self.listen()
            except Exception as exc:
                _reject(completion, exc)
                return
            started.add_done_callback(lambda bound: _transfer(bound, completion))

        self.shutdown().add_done_callback(after_shutdown)
        return completion

    def _destroy(self, connection: Any) -> None:
        try:
            self._state.listener.destroy(connection)
        except Exception as exc:
            self._logger.debug(f"Ignoring destroy failure for {connection!r}: {exc}")


def _resolve(completion: Completion, value: Any) -> None:
    if not completion.done():
        completion.set_result(value)


def _reject(completion: Completion, exc: BaseException) -> None:
    if not completion.done():
        completion.set_exception(exc)


def _transfer(source: Completion, target: Completion) -> None:
    if target.done():
        return
    if source.cancelled():
        target.cancel()
        return

    exc = source.exception()
    if exc is not None:
        target.set_exception(exc)
    else:
        target.set_result(source.result())
