"""Things: client side views of remote devices.

A thing parses its description, claims the properties its capabilities care
about, keeps them in a PropertyStore and keeps that store in sync from two
unordered sources: the push channel and batched pulls. Writes go out through
``set_property`` and are applied locally once the gateway confirms them.
"""
import asyncio, logging
from html import escape
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, Union

import httpx

from .capabilities import (Capability, CameraSettings, Imaging, Level, Open,
                           Power, Temperature)
from .context import GatewayContext
from .details import Detail, ImageDetail, ViewNode, make_detail, mount
from .errors import PreconditionError, ProtocolError, TransportError
from .gateway_client import decode_frame, read_properties, write_property, ws_messages
from .images import handles
from .mappings import coerce
from .models import PropertyDescriptor, ThingDescription
from .settings import settings
from .store import PropertyStore
from .tasks import OperationRegistry

log = logging.getLogger("thing")

RENDER_MODES = ("svg", "html", "htmlDetail")
INTERACTIVE_MODES = ("html", "htmlDetail")

Listener = Callable[["Thing", Dict[str, Any]], None]

class Thing:
    capabilities: Tuple[Type[Capability], ...] = ()
    css_class = ""

    def __init__(self, description: Union[ThingDescription, Dict[str, Any]],
                 render_mode: str = "html", ctx: Optional[GatewayContext] = None):
        if render_mode not in RENDER_MODES:
            raise ValueError(f"unknown render mode {render_mode!r}")
        desc = ThingDescription.model_validate(description)
        self.description = desc
        self.name = desc.name
        self.type = desc.type
        self.render_mode = render_mode
        self.ctx = ctx or GatewayContext.from_settings()
        self.x, self.y = desc.floorplan_x, desc.floorplan_y

        self.href = self.ctx.resolve(desc.href) if desc.href else None
        self.id = httpx.URL(self.href).path.rstrip("/").split("/")[-1] if self.href else ""

        self.property_descriptions: Dict[str, PropertyDescriptor] = dict(desc.properties)
        self.caps = [cls() for cls in self.capabilities]
        self.tracked: Dict[str, Capability] = {}
        for name, prop in self.property_descriptions.items():
            for cap in self.caps:
                if cap.selects(name, prop):
                    cap.claim(name)
                    self.tracked[name] = cap
                    break
        self.properties = PropertyStore(self.property_descriptions)

        self.details: Dict[str, Detail] = {}
        if self.interactive:
            for name, cap in self.tracked.items():
                prop = self.property_descriptions[name]
                if not prop.href:
                    continue
                detail = make_detail(cap.kind_for(name, prop), self, name, prop)
                if detail is not None:
                    self.details[name] = detail

        self.nodes: Dict[str, ViewNode] = {}
        self.refreshes = 0
        self._listeners: List[Listener] = []
        self._tasks = OperationRegistry(f"thing:{self.id or self.name}")
        self._push_connected = False
        self.element = self.render()

    @property
    def interactive(self) -> bool:
        return self.render_mode in INTERACTIVE_MODES

    def property_url(self, name: str) -> str:
        return self.ctx.resolve(self.property_descriptions[name].href, self.href)

    # lifecycle

    def start(self, resync_interval: Optional[float] = None):
        """Open the push channel and issue the initial pull.

        Must be called from a running event loop. Non-interactive things and
        things without an href stay static.
        """
        if not self.interactive or not self.href:
            return
        interval = settings.RESYNC_INTERVAL if resync_interval is None else resync_interval
        self._tasks.spawn(self._push_loop(), "push")
        self._tasks.spawn(self.update_status(), "pull")
        if interval > 0:
            self._tasks.spawn(self._resync_loop(interval), "resync")

    async def close(self):
        await self._tasks.drain()
        for detail in self.details.values():
            if isinstance(detail, ImageDetail) and detail.node is not None:
                handles.revoke(detail.node.src)
        self._listeners.clear()
        log.info("Closed %s", self.id)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def subscribe(self, cb: Listener) -> Callable[[], None]:
        self._listeners.append(cb)
        return lambda: self._listeners.remove(cb)

    # inbound

    async def _push_loop(self):
        async for raw in ws_messages(self.ctx, self.href, on_connect=self._on_push_connect):
            self.handle_frame(raw)

    async def _on_push_connect(self):
        # Frames may have been missed while disconnected.
        if self._push_connected:
            self._tasks.spawn(self.update_status(), "reconnect-pull")
        self._push_connected = True

    async def _resync_loop(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            await self.update_status()

    def handle_frame(self, raw: Union[str, bytes]) -> Dict[str, Any]:
        try:
            data = decode_frame(raw)
        except ProtocolError as e:
            log.warning("Dropping frame for %s: %s", self.id, e)
            return {}
        if data is None:
            return {}
        log.debug("propertyStatus for %s: %s", self.id, list(data))
        return self.on_property_status(data)

    async def update_status(self, names: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Pull the tracked properties and apply them as one update."""
        names = list(self.tracked if names is None else names)
        hrefs = [self.property_url(n) for n in names if self.property_descriptions[n].href]
        if not hrefs:
            return {}
        since = self.properties.clock
        data, errors = await read_properties(self.ctx, hrefs)
        for e in errors:
            log.warning("Error fetching %s property status: %s", self.id, e)
        return self.on_property_status(data, since=since)

    def on_property_status(self, data: Optional[Dict[str, Any]],
                           since: Optional[int] = None) -> Dict[str, Any]:
        """Route a property map to the owning capabilities and refresh once."""
        if not data:
            return {}
        accepted = {}
        for name, value in data.items():
            cap = self.tracked.get(name)
            if cap is None or value is None or not cap.accepts(name, value):
                continue
            accepted[name] = value
        applied = self.properties.apply(accepted, since=since)
        if applied:
            self.refresh(applied)
        return applied

    def refresh(self, applied: Dict[str, Any]):
        for name in applied:
            detail = self.details.get(name)
            if detail is not None:
                detail.update()
        self.refreshes += 1
        for cb in list(self._listeners):
            cb(self, applied)

    # outbound

    async def set_property(self, name: str, value: Any) -> bool:
        """Write ``value`` and apply it locally once the gateway answers 200.

        On any other outcome nothing changes locally and a pull of the
        property is scheduled.
        """
        prop = self.property_descriptions.get(name)
        if name not in self.tracked or prop is None or not prop.href:
            raise PreconditionError(f"{self.id} has no writable property {name!r}")
        try:
            value = coerce(prop.type, value)
        except (TypeError, ValueError) as e:
            raise PreconditionError(f"bad value for {name}: {value!r}") from e

        try:
            ok = await write_property(self.ctx, self.property_url(name), name, value)
        except TransportError as e:
            log.error("Error trying to set %s on %s: %s", name, self.id, e)
            ok = False
        if not ok:
            if not self._tasks.closed:
                self._tasks.spawn(self.update_status([name]), f"recover:{name}")
            return False

        applied = self.properties.apply({name: value})
        if applied:
            self.refresh(applied)
        return True

    # view

    def state(self) -> Dict[str, Any]:
        """Display state derived from the store."""
        out: Dict[str, Any] = {}
        for cap in self.caps:
            cap.derive(self.properties, out)
        return out

    def visible_details(self) -> List[Detail]:
        if self.render_mode == "htmlDetail":
            return list(self.details.values())
        if self.render_mode == "html":
            return [d for d in self.details.values() if isinstance(d, ImageDetail)]
        return []

    def render(self) -> str:
        """Render the view for the mode and attach the bindings it contains."""
        if self.render_mode == "svg":
            return self.svg_view()
        visible = self.visible_details()
        fragments = "".join(d.render_fragment() for d in visible)
        self.nodes = mount(visible)
        for d in visible:
            d.attach(self.nodes)
            d.update()
        if self.render_mode == "htmlDetail":
            return self.html_detail_view(fragments)
        return self.html_view(fragments)

    def svg_view(self) -> str:
        return (f'<g transform="translate({self.x},{self.y})" class="floorplan-thing">'
                f'<a xlink:href="{escape(self.href or "")}" class="svg-thing-link">'
                f'<circle cx="0" cy="0" r="5" class="svg-thing-icon"/>'
                f'<text x="0" y="8" text-anchor="middle" class="svg-thing-text">{escape(self.name)}</text>'
                f'</a></g>')

    def html_view(self, fragments: str = "") -> str:
        return (f'<div class="thing {self.css_class}">'
                f'<a href="{escape(self.href or "")}" class="thing-details-link"></a>'
                f'{fragments}<span class="thing-name">{escape(self.name)}</span></div>')

    def html_detail_view(self, fragments: str = "") -> str:
        return f'<div><div class="thing {self.css_class}"></div>{fragments}</div>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "href": self.href,
            "properties": self.properties.snapshot(),
            "state": self.state(),
        }

class OnOffSwitch(Thing):
    capabilities = (Power,)
    css_class = "on-off-switch"

class MultiLevelSwitch(Thing):
    capabilities = (Power, Level)
    css_class = "level-switch"

class TemperatureLight(Thing):
    capabilities = (Power, Temperature)
    css_class = "temperature-light-container"

class DimmableTemperatureLight(Thing):
    capabilities = (Power, Temperature, Level)
    css_class = "temperature-light-container"

class Camera(Thing):
    capabilities = (Imaging, CameraSettings)
    css_class = "camera-thing"

class GarageDoor(Thing):
    capabilities = (Open,)

THING_TYPES: Dict[str, Type[Thing]] = {
    "onOffSwitch": OnOffSwitch,
    "onOffLight": OnOffSwitch,
    "binarySensor": OnOffSwitch,
    "multiLevelSwitch": MultiLevelSwitch,
    "dimmableLight": MultiLevelSwitch,
    "temperatureLight": TemperatureLight,
    "dimmableTemperatureLight": DimmableTemperatureLight,
    "camera": Camera,
    "garageDoor": GarageDoor,
}

def create_thing(description: Union[ThingDescription, Dict[str, Any]],
                 render_mode: str = "html", ctx: Optional[GatewayContext] = None) -> Thing:
    desc = ThingDescription.model_validate(description)
    cls = THING_TYPES.get(desc.type or "", Thing)
    return cls(desc, render_mode, ctx)
