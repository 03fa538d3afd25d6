import asyncio
from typing import AsyncIterator

class Broadcaster:
    def __init__(self):
        self._queues = set()

    def __len__(self):
        return len(self._queues)

    async def register(self) -> AsyncIterator[dict]:
        q: asyncio.Queue = asyncio.Queue()
        self._queues.add(q)
        try:
            while True:
                yield await q.get()
        finally:
            self._queues.discard(q)

    def publish(self, event: dict):
        for q in list(self._queues):
            q.put_nowait(event)

broadcaster = Broadcaster()
