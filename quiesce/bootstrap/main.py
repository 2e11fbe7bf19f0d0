import asyncio
import logging

from quiesce.bootstrap.settings import QuiesceSettings
from quiesce.core.server import Server
from quiesce.core.types_ import RequestHandler
from quiesce.core.utils.log import setup_logging
from quiesce.core.utils.sig import shutdown_signals

logger = logging.getLogger("quiesce.bootstrap")


async def serve(server: Server) -> None:
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def graceful_exit(sig) -> None:
        logger.info(f"Received {sig.name}, shutting down")
        stop_event.set()

    with shutdown_signals(loop, graceful_exit):
        await server.listen()
        await stop_event.wait()
        await server.shutdown()


def run(
    app: RequestHandler,
    settings: QuiesceSettings | None = None,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    if settings is None:
        settings = QuiesceSettings()
    if loop is None:
        loop = asyncio.new_event_loop()

    config = settings.to_config()
    config.loop = loop
    server = Server(app, config)

    try:
        loop.run_until_complete(serve(server))
    except KeyboardInterrupt:
        pass
    finally:
        try:
            _cancel_pending(loop)
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
        finally:
            loop.close()


def _cancel_pending(loop: asyncio.AbstractEventLoop) -> None:
    pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
    if not pending:
        return

    logger.debug(f"Cancelling {len(pending)} pending task(s) before closing the loop")
    for task in pending:
        task.cancel()
    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))


def entrypoint(app: RequestHandler) -> None:
    settings = QuiesceSettings()
    setup_logging(settings.log_level)
    run(app, settings)
