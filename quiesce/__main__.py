import asyncio

from quiesce import App, entrypoint
from quiesce.core.model.event import Event

app = App()


@app.request("echo")
async def echo(data: dict) -> Event:
    return Event(type="ok", payload={"content": data.get("content")})


@app.request("sleep")
async def sleep(data: dict) -> Event:
    await asyncio.sleep(float(data.get("seconds", 1.0)))
    return Event(type="ok", payload={})


if __name__ == '__main__':
    entrypoint(app)
