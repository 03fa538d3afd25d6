import asyncio, logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sse_starlette.sse import EventSourceResponse
from .settings import settings
from .state import catalog
from .api import jsonable, router as api_router
from .realtime import broadcaster
from .sse import event_stream

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, "INFO"))

app = FastAPI(title="Thing View", version="0.1.0")
app.include_router(api_router)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

def _publish(thing, applied):
    broadcaster.publish({
        "event": "property",
        "data": {"thing_id": thing.id, "properties": jsonable(applied)},
    })

catalog.on_update(_publish)

async def do_full_sync_with_retry():
    log = logging.getLogger("startup")
    delay = 2
    while True:
        try:
            await catalog.full_sync()
            log.info("Initial full_sync succeeded")
            return
        except Exception as e:
            log.warning("full_sync failed: %s; retrying in %ss", e, delay)
            await asyncio.sleep(delay)
            delay = min(delay * 2, 60)

_startup_tasks = set()

@app.on_event("startup")
async def on_start():
    # Sync in the background so startup doesn't fail while the gateway is unreachable
    task = asyncio.create_task(do_full_sync_with_retry())
    _startup_tasks.add(task)
    task.add_done_callback(_startup_tasks.discard)

@app.on_event("shutdown")
async def on_stop():
    for task in list(_startup_tasks):
        task.cancel()
    await catalog.close()

@app.get("/api/v1/status/stream")
async def stream():
    return EventSourceResponse(event_stream(broadcaster.register()), ping=15)

@app.get("/")
def root():
    return {"name": "thingview", "status": "ok", "things": len(catalog.things)}
