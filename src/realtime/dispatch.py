"""Fire-and-forget scheduling for work that must not hold up an HTTP response."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

import httpx

LOGGER = logging.getLogger(__name__)


class DetachedTasks:
    """Keeps background tasks alive and logs whatever they raise.

    The event loop only holds weak references to tasks, so a task nobody
    stores can be garbage collected mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("%s failed: %s", task.get_name(), exc, exc_info=exc)

    async def wait(self) -> None:
        """Wait for everything spawned so far (used by tests and shutdown)."""

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


class ObserverTrigger:
    """Asks this service's own ``/observer/{call_id}`` route to attach an observer."""

    def __init__(
        self,
        tasks: DetachedTasks,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._tasks = tasks
        self._timeout = timeout
        self._transport = transport

    def fire(self, call_id: str, origin: str) -> None:
        url = f"{origin.rstrip('/')}/observer/{call_id}"
        self._tasks.spawn(self._post(url), name=f"observer-trigger:{call_id}")

    async def _post(self, url: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.error("observer trigger failed: %s", exc)
