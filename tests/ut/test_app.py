import asyncio

import pytest

from quiesce.core.app import App
from quiesce.core.model.event import Event
from quiesce.core.router import Router


@pytest.mark.ut
def test_router_rejects_duplicate_handler():
    router = Router()

    @router.request("get")
    async def first(data):
        return None

    with pytest.raises(RuntimeError):
        router.add_route("get", first)

    assert router.resolve("get") is first
    assert router.resolve("put") is None
    assert list(router.routes()) == ["get"]


@pytest.mark.ut
def test_app_dispatches_with_request_id():
    app = App()
    seen = {}

    @app.request("get")
    async def get(data):
        seen.update(data)
        return Event(type="ok", payload={"key": data["key"]})

    response = asyncio.run(app(Event("get", {"key": "souls"})))

    assert response == Event("ok", {"key": "souls"})
    assert "request_id" in seen


@pytest.mark.ut
def test_app_keeps_caller_request_id():
    app = App()

    @app.request("get")
    async def get(data):
        return Event(type="ok", payload={"request_id": data["request_id"]})

    response = asyncio.run(app(Event("get", {"request_id": "r-1"})))

    assert response.payload["request_id"] == "r-1"


@pytest.mark.ut
def test_app_unknown_type_returns_error():
    response = asyncio.run(App()(Event("missing", {})))

    assert response.type == "req.error"
    assert "missing" in response.payload["message"]


@pytest.mark.ut
def test_app_handler_exception_returns_error():
    app = App()

    @app.request("boom")
    async def boom(data):
        raise ValueError("kaput")

    response = asyncio.run(app(Event("boom", {})))

    assert response == Event("req.error", {"message": "kaput"})


@pytest.mark.ut
def test_app_handler_without_response():
    app = App()

    @app.request("fire")
    async def fire(data):
        return None

    assert asyncio.run(app(Event("fire", {}))) is None
