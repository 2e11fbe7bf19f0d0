import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any


@dataclass
class ConnectionEntry:
    identity: str
    connection: Any
    idle: bool = True


class ConnectionRegistry:
    """
    Thread-safe mapping of connection identity to its entry.

    The registry only book-keeps: destroying the connections returned by
    ``drain_all`` is up to the caller.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ConnectionEntry] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger("quiesce.core.registry")

    def register(self, connection: Any) -> str:
        identity = str(uuid.uuid4())
        with self._lock:
            self._entries[identity] = ConnectionEntry(identity=identity, connection=connection)
        self._logger.debug(f"Registered connection {identity}")
        return identity

    def mark_active(self, identity: str) -> None:
        self._set_idle(identity, False)

    def mark_idle(self, identity: str) -> None:
        self._set_idle(identity, True)

    def _set_idle(self, identity: str, idle: bool) -> None:
        with self._lock:
            entry = self._entries.get(identity)
            if entry is not None:
                entry.idle = idle

    def remove(self, identity: str) -> ConnectionEntry | None:
        with self._lock:
            entry = self._entries.pop(identity, None)
        if entry is not None:
            self._logger.debug(f"Removed connection {identity}")
        return entry

    def drain_all(self) -> list[Any]:
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        return [entry.connection for entry in entries]

    def get(self, identity: str) -> ConnectionEntry | None:
        with self._lock:
            return self._entries.get(identity)

    def identities(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def is_idle(self, identity: str) -> bool | None:
        entry = self.get(identity)
        return None if entry is None else entry.idle

    def idle_count(self) -> int:
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.idle)

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for entry in self._entries.values() if not entry.idle)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._entries
