from dataclasses import dataclass
from typing import Any

from quiesce.core.config import Config
from quiesce.core.registry import ConnectionRegistry
from quiesce.core.types_ import Listener, Notify


@dataclass
class ServerState:
    config: Config
    listener: Listener[Any]
    registry: ConnectionRegistry
    wiring: Notify | None = None
