from concurrent.futures import Future

import pytest

from quiesce.core.config import Config
from quiesce.core.server import Server
from tests.ut.fakes import FakeListener


async def noop_app(event):
    return None


@pytest.fixture
def listener() -> FakeListener:
    return FakeListener()


@pytest.fixture
def config() -> Config:
    return Config(port=8080, completion=Future)


@pytest.fixture
def server(listener: FakeListener, config: Config) -> Server:
    return Server(app=noop_app, config=config, listener=listener)


@pytest.fixture
def listening(server: Server) -> Server:
    server.listen().result(timeout=0)
    return server
