"""Shared fixtures: a fake gateway behind httpx.MockTransport and a fake push channel."""

import asyncio
import json
import os
from typing import Any, Coroutine, Dict, List, TypeVar

os.environ.setdefault("GATEWAY_TOKEN", "test-token")
os.environ.setdefault("GATEWAY_URL", "http://gw.test")
os.environ.setdefault("RECONNECT_DELAY", "0.01")
os.environ.setdefault("RECONNECT_MAX_DELAY", "0.05")
os.environ.setdefault("RESYNC_INTERVAL", "0")

import httpx
import pytest

from thingview.context import GatewayContext

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine synchronously for testing."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeGateway:
    """Serves property bodies by path and records every request."""

    def __init__(self):
        self.values: Dict[str, Any] = {}
        self.delays: Dict[str, float] = {}
        self.failing: set = set()
        self.put_status = 200
        self.requests: List[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        await asyncio.sleep(self.delays.get(path, 0))
        if path in self.failing:
            raise httpx.ConnectError("gateway unreachable", request=request)
        if request.method == "PUT":
            return httpx.Response(self.put_status, json=json.loads(request.content))
        if path not in self.values:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=self.values[path])

    def puts(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "PUT"]

    def gets(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]


class FakeSocket:
    def __init__(self, frames, hold: bool = True):
        self.frames = list(frames)
        self.hold = hold

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        for f in self.frames:
            yield f
        if self.hold:
            await asyncio.Event().wait()


class FakeConnect:
    """Stands in for websockets.connect; hands out queued sessions in order."""

    def __init__(self, *sessions):
        self.sessions = list(sessions)
        self.urls: List[str] = []

    def __call__(self, url: str):
        self.urls.append(url)
        if not self.sessions:
            return FakeSocket([])
        session = self.sessions.pop(0)
        if isinstance(session, Exception):
            raise session
        return session


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_ctx(gateway):
    def _make(connect=None) -> GatewayContext:
        return GatewayContext("http://gw.test", "tok",
                              transport=httpx.MockTransport(gateway.handler),
                              connect=connect or FakeConnect())
    return _make


@pytest.fixture
def ctx(make_ctx) -> GatewayContext:
    return make_ctx()


@pytest.fixture
def light_description() -> Dict[str, Any]:
    return {
        "name": "Desk Lamp",
        "type": "dimmableTemperatureLight",
        "href": "/things/lamp",
        "properties": {
            "on": {"type": "boolean", "href": "/things/lamp/properties/on"},
            "temperature": {"type": "number", "href": "/things/lamp/properties/temperature"},
            "level": {"type": "number", "unit": "percent", "href": "/things/lamp/properties/level"},
        },
    }


@pytest.fixture
def camera_description() -> Dict[str, Any]:
    return {
        "name": "Porch Cam",
        "type": "camera",
        "href": "/things/cam-1",
        "properties": {
            "stillImage": {"type": "stillImage", "unit": "base64", "href": "/things/cam-1/properties/stillImage"},
            "resolution": {"type": "choice", "href": "/things/cam-1/properties/resolution"},
            "exposureMode": {"type": "choice", "href": "/things/cam-1/properties/exposureMode",
                             "choices": ["auto", "night"], "friendlyName": "Mode"},
            "status": {"type": "label", "href": "/things/cam-1/properties/status"},
            "framerate": {"type": "number", "href": "/things/cam-1/properties/framerate"},
        },
    }


@pytest.fixture
def garage_description() -> Dict[str, Any]:
    return {
        "name": "Garage",
        "type": "garageDoor",
        "href": "/things/garage",
        "floorplanX": 10,
        "floorplanY": 20,
        "properties": {
            "open": {"type": "boolean", "href": "/things/garage/properties/open"},
        },
    }
