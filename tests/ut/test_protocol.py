import asyncio

import msgpack
import pytest

from quiesce.core.app import App
from quiesce.core.config import Config
from quiesce.core.model.event import Event, HEADER
from quiesce.core.protocol import Connection


class FakeTransport:
    def __init__(self) -> None:
        self.written: list[bytes] = []
        self.aborted = 0
        self.closed = False

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def abort(self) -> None:
        self.aborted += 1

    def close(self) -> None:
        self.closed = True

    def get_extra_info(self, name: str, default=None):
        return default


def echo_app() -> App:
    app = App()

    @app.request("echo")
    async def echo(data: dict) -> Event:
        return Event(type="ok", payload={"content": data["content"]})

    return app


async def open_connection(max_buffer_size: int = 64) -> tuple[Connection, FakeTransport, set]:
    tasks: set[asyncio.Task[None]] = set()
    connection = Connection(
        app=echo_app(),
        config=Config(max_buffer_size=max_buffer_size),
        on_made=lambda conn: None,
        tasks=tasks,
        loop=asyncio.get_running_loop(),
    )
    transport = FakeTransport()
    connection.connection_made(transport)
    return connection, transport, tasks


async def close_connection(connection: Connection, tasks: set) -> None:
    connection.connection_lost(None)
    await asyncio.gather(*tasks)


async def wait_for_writes(transport: FakeTransport, count: int) -> None:
    for _ in range(200):
        if len(transport.written) >= count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} writes, got {len(transport.written)}")


@pytest.mark.ut
def test_frame_announcing_more_than_limit_destroys_connection():
    async def scenario():
        connection, transport, tasks = await open_connection(max_buffer_size=64)

        connection.data_received(HEADER.pack(1024))

        assert transport.aborted == 1
        await close_connection(connection, tasks)
        assert transport.written == []

    asyncio.run(scenario())


@pytest.mark.ut
def test_buffer_growing_past_limit_destroys_connection():
    async def scenario():
        connection, transport, tasks = await open_connection(max_buffer_size=64)

        connection.data_received(HEADER.pack(60))
        assert transport.aborted == 0

        connection.data_received(b"x" * 70)

        assert transport.aborted == 1
        await close_connection(connection, tasks)

    asyncio.run(scenario())


@pytest.mark.ut
def test_frames_split_across_chunks_are_served_in_order():
    async def scenario():
        connection, transport, tasks = await open_connection(max_buffer_size=1024)
        first = Event("echo", {"content": "a"}).to_frame()
        second = Event("echo", {"content": "b"}).to_frame()

        connection.data_received(first[:3])
        connection.data_received(first[3:] + second[:5])
        connection.data_received(second[5:])
        await wait_for_writes(transport, 2)

        contents = [Event.from_payload(frame[HEADER.size:]).payload["content"] for frame in transport.written]
        assert contents == ["a", "b"]
        assert transport.aborted == 0

        await close_connection(connection, tasks)

    asyncio.run(scenario())


@pytest.mark.ut
def test_undecodable_frame_is_dropped_and_next_one_served():
    async def scenario():
        connection, transport, tasks = await open_connection(max_buffer_size=1024)
        junk = msgpack.packb([1, 2], use_bin_type=True)

        connection.data_received(HEADER.pack(len(junk)) + junk)
        connection.data_received(Event("echo", {"content": "ok"}).to_frame())
        await wait_for_writes(transport, 1)

        (frame,) = transport.written
        assert Event.from_payload(frame[HEADER.size:]) == Event("ok", {"content": "ok"})
        assert transport.aborted == 0

        await close_connection(connection, tasks)

    asyncio.run(scenario())
