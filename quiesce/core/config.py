import asyncio
from dataclasses import dataclass

from quiesce.core.types_ import Completion, CompletionFactory


@dataclass
class Config:
    host: str = "127.0.0.1"
    port: int = 8000
    backlog: int = 128

    loop: asyncio.AbstractEventLoop | None = None
    completion: CompletionFactory | None = None

    max_buffer_size: int = 4 * 1024 * 1024  # 4MB

    def create_completion(self) -> Completion:
        if self.completion is not None:
            return self.completion()

        loop = self.loop or asyncio.get_running_loop()
        return loop.create_future()
