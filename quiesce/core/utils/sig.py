import asyncio
import contextlib
import signal
import sys
import threading
from collections.abc import Callable
from typing import Generator

SHUTDOWN_SIGNALS = (
    signal.SIGINT,
    signal.SIGTERM,
)

if sys.platform == "win32":
    SHUTDOWN_SIGNALS += (signal.SIGBREAK,)


@contextlib.contextmanager
def shutdown_signals(
    loop: asyncio.AbstractEventLoop,
    callback: Callable[[signal.Signals], None],
) -> Generator[None, None, None]:
    """
    Route shutdown signals to ``callback`` on ``loop`` while the block runs.

    Signals received meanwhile are raised again once the original handlers
    are back in place, so an outer handler still sees them.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    captured: list[signal.Signals] = []

    def capture(sig: signal.Signals) -> None:
        captured.append(sig)
        callback(sig)

    original_handlers = {sig: signal.getsignal(sig) for sig in SHUTDOWN_SIGNALS}

    if sys.platform == "win32":
        for sig in SHUTDOWN_SIGNALS:
            signal.signal(sig, lambda num, _: loop.call_soon_threadsafe(capture, signal.Signals(num)))
    else:
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, capture, sig)

    try:
        yield
    finally:
        for sig, old in original_handlers.items():
            if sys.platform != "win32":
                loop.remove_signal_handler(sig)
            signal.signal(sig, old)

        for sig in reversed(captured):
            if original_handlers[sig] is not signal.SIG_IGN:
                signal.raise_signal(sig)
