import asyncio, logging
from typing import Coroutine, Set

log = logging.getLogger("tasks")

class OperationRegistry:
    """Tracks in-flight tasks of one thing so teardown can cancel them."""

    def __init__(self, owner: str):
        self.owner = owner
        self._tasks: Set[asyncio.Task] = set()
        self.closed = False

    def __len__(self):
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: str = "") -> asyncio.Task:
        if self.closed:
            coro.close()
            raise RuntimeError(f"{self.owner} is closed")
        task = asyncio.get_running_loop().create_task(coro, name=f"{self.owner}:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._done)
        return task

    def _done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.error("%s failed: %r", task.get_name(), task.exception())

    async def drain(self):
        self.closed = True
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
