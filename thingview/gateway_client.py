import asyncio, json, logging
import httpx
from pydantic import ValidationError
from websockets.exceptions import WebSocketException
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple
from .context import GatewayContext
from .errors import ProtocolError, TransportError
from .models import PropertyStatusFrame
from .settings import settings

log = logging.getLogger("gateway")

async def rest_get(ctx: GatewayContext, href: str) -> Any:
    try:
        async with ctx.http() as c:
            r = await c.get(ctx.resolve(href))
            r.raise_for_status()
    except httpx.HTTPError as e:
        raise TransportError(f"GET {href} failed: {e}") from e
    try:
        return r.json()
    except ValueError as e:
        raise ProtocolError(f"GET {href} returned a non-JSON body") from e

async def rest_put(ctx: GatewayContext, href: str, data: Dict[str, Any]) -> int:
    """PUT a JSON body and return the status code; raising is left to the caller."""
    try:
        async with ctx.http() as c:
            r = await c.put(ctx.resolve(href), json=data)
    except httpx.HTTPError as e:
        raise TransportError(f"PUT {href} failed: {e}") from e
    return r.status_code

async def read_property(ctx: GatewayContext, href: str) -> Dict[str, Any]:
    body = await rest_get(ctx, href)
    if body is not None and not isinstance(body, dict):
        raise ProtocolError(f"property body from {href} is not an object")
    return body or {}

async def read_properties(ctx: GatewayContext, hrefs: List[str]) -> Tuple[Dict[str, Any], List[Exception]]:
    """Read every href concurrently and merge the bodies once all have settled.

    Bodies are merged in request order regardless of completion order. Failed
    reads are returned alongside so the caller can report them.
    """
    results = await asyncio.gather(*(read_property(ctx, h) for h in hrefs),
                                   return_exceptions=True)
    merged: Dict[str, Any] = {}
    errors: List[Exception] = []
    for res in results:
        if isinstance(res, (TransportError, ProtocolError)):
            errors.append(res)
        elif isinstance(res, BaseException):
            raise res
        else:
            merged.update(res)
    return merged, errors

async def write_property(ctx: GatewayContext, href: str, name: str, value: Any) -> bool:
    status = await rest_put(ctx, href, {name: value})
    if status != 200:
        log.error("Status %s trying to set %s", status, name)
        return False
    return True

async def ws_messages(ctx: GatewayContext, href: str,
                      on_connect: Optional[Callable[[], Awaitable[None]]] = None) -> AsyncIterator[str]:
    """Yield raw push frames for a thing, reconnecting forever with backoff.

    The realtime URL is derived again on every attempt so a refreshed token is
    picked up. ``on_connect`` runs after each successful connect.
    """
    delay = settings.RECONNECT_DELAY
    while True:
        url = ctx.realtime_url(href)
        try:
            async with ctx.connect(url) as ws:
                log.info("Push channel open for %s", href)
                delay = settings.RECONNECT_DELAY
                if on_connect is not None:
                    await on_connect()
                async for raw in ws:
                    yield raw
            log.warning("Push channel for %s closed; reconnecting in %ss", href, delay)
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            log.warning("Push channel for %s disconnected: %s; retrying in %ss", href, e, delay)
        await asyncio.sleep(delay)
        delay = min(delay * 2, settings.RECONNECT_MAX_DELAY)

async def list_things(ctx: GatewayContext) -> List[Dict[str, Any]]:
    things = await rest_get(ctx, "/things")
    if not isinstance(things, list):
        raise ProtocolError("/things did not return a list")
    return things

def decode_frame(raw) -> Optional[Dict[str, Any]]:
    """Return the property map of a propertyStatus frame, None for other frames."""
    try:
        msg = json.loads(raw)
    except ValueError as e:
        raise ProtocolError("push frame is not JSON") from e
    if not isinstance(msg, dict):
        raise ProtocolError("push frame is not an object")
    if msg.get("messageType") != "propertyStatus":
        return None
    try:
        return PropertyStatusFrame.model_validate(msg).data or {}
    except ValidationError as e:
        raise ProtocolError(f"bad propertyStatus frame: {e}") from e
