"""Explicit gateway context passed to every transport call.

Holds the origin relative hrefs resolve against, the bearer token and the
factories used to open HTTP clients and push connections. Tests swap the
factories for fakes.
"""
from typing import Any, Callable, Dict, Optional

import httpx
import websockets

from .settings import settings

class GatewayContext:
    def __init__(self, origin: str, token: str, *,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 connect: Optional[Callable[[str], Any]] = None):
        self.origin = origin.rstrip("/")
        self.token = token
        self.timeout = settings.REQUEST_TIMEOUT if timeout is None else timeout
        self.transport = transport
        self.connect = connect or websockets.connect

    @classmethod
    def from_settings(cls, **kw) -> "GatewayContext":
        return cls(settings.GATEWAY_URL, settings.GATEWAY_TOKEN, **kw)

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}

    def resolve(self, href: str, base: Optional[str] = None) -> str:
        return str(httpx.URL(base or self.origin + "/").join(href))

    def realtime_url(self, href: str) -> str:
        # http -> ws, https -> wss
        url = httpx.URL(self.resolve(href))
        scheme = "wss" if url.scheme == "https" else "ws"
        return str(url.copy_with(scheme=scheme).copy_merge_params({"jwt": self.token}))

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(headers=self.headers(), timeout=self.timeout,
                                 transport=self.transport)

    def update_token(self, token: str):
        """Swap the token; open push channels pick it up on their next reconnect."""
        self.token = token
