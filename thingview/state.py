import asyncio, logging
from typing import Any, Callable, Dict, List, Optional
from .context import GatewayContext
from .gateway_client import list_things
from .settings import settings
from .things import Thing, create_thing

log = logging.getLogger("state")

class Catalog:
    def __init__(self, ctx: Optional[GatewayContext] = None, render_mode: Optional[str] = None):
        self._ctx = ctx
        self.render_mode = render_mode or settings.RENDER_MODE
        self.things: Dict[str, Thing] = {}
        self._listeners: List[Callable[[Thing, Dict[str, Any]], None]] = []

    @property
    def ctx(self) -> GatewayContext:
        if self._ctx is None:
            self._ctx = GatewayContext.from_settings()
        return self._ctx

    def on_update(self, cb: Callable[[Thing, Dict[str, Any]], None]):
        self._listeners.append(cb)

    def _relay(self, thing: Thing, applied: Dict[str, Any]):
        for cb in list(self._listeners):
            cb(thing, applied)

    async def add(self, description: Dict[str, Any]) -> Thing:
        thing = create_thing(description, self.render_mode, self.ctx)
        old = self.things.get(thing.id)
        if old is not None:
            await old.close()
        thing.subscribe(self._relay)
        self.things[thing.id] = thing
        thing.start()
        return thing

    async def full_sync(self):
        descriptions = await list_things(self.ctx)
        seen = set()
        for d in descriptions:
            seen.add((await self.add(d)).id)
        for tid in [t for t in self.things if t not in seen]:
            await self.things.pop(tid).close()
        log.info("Full sync: %d things", len(self.things))

    def get(self, thing_id: str) -> Optional[Thing]:
        return self.things.get(thing_id)

    async def close(self):
        things = list(self.things.values())
        self.things.clear()
        await asyncio.gather(*(t.close() for t in things), return_exceptions=True)

catalog = Catalog()
