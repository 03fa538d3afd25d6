from typing import AsyncIterator
import json

def encode_event(ev: dict) -> dict:
    return {
        "event": ev.get("event", "message"),
        "data": json.dumps(ev["data"]) if "data" in ev else json.dumps(ev),
    }

async def event_stream(generator: AsyncIterator[dict]) -> AsyncIterator[dict]:
    async for ev in generator:
        yield encode_event(ev)
