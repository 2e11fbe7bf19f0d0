from quiesce.bootstrap.main import run, entrypoint
from quiesce.bootstrap.settings import QuiesceSettings
from quiesce.core.app import App
from quiesce.core.config import Config
from quiesce.core.exception import QuiesceError, BindError
from quiesce.core.model.event import Event
from quiesce.core.server import Server

__all__ = [
    "App",
    "BindError",
    "Config",
    "Event",
    "QuiesceError",
    "QuiesceSettings",
    "Server",
    "entrypoint",
    "run",
]
