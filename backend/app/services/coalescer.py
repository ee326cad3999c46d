"""Debounced, per-key remote write scheduling."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from app.logging import get_logger

logger = get_logger("services.coalescer")

WriteFn = Callable[[], Awaitable[None]]


def key_scope(key: str) -> str:
    """Scope segment of a ``<kind>:<scope>[:<id>]`` key."""
    parts = key.split(":", 2)
    return parts[1] if len(parts) > 1 else ""


class WriteCoalescer:
    """Collapse bursts of writes to the same key into one deferred call.

    Keys look like ``<kind>:<scope>[:<id>]``; the scope is the owning user so
    one user's writes can be dropped without touching anyone else's.

    A second schedule() for a key inside the delay window replaces the pending
    one. The write callable is invoked when the timer fires, so it should read
    the latest local state at that moment. Writes for one key never overlap:
    a timer that fires while the previous write for its key is still in flight
    waits for it first.
    """

    def __init__(self, delay: float):
        self.delay = max(float(delay), 0.0)
        self._pending: dict[str, asyncio.Task] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def pending_keys(self) -> set[str]:
        return set(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def is_inflight(self, key: str) -> bool:
        return key in self._inflight

    def schedule(self, key: str, perform_write: WriteFn) -> None:
        existing = self._pending.pop(key, None)
        if existing is not None:
            existing.cancel()
        task = asyncio.get_running_loop().create_task(self._run(key, perform_write))
        self._pending[key] = task

    def cancel(self, key: str) -> bool:
        task = self._pending.pop(key, None)
        if task is None:
            return False
        task.cancel()
        logger.debug(f"Cancelled pending write key={key}")
        return True

    async def wait_inflight(self, key: str) -> None:
        running = self._inflight.get(key)
        if running is not None:
            await asyncio.wait({running})

    async def settle(self, key: str) -> None:
        """Cancel the pending write for ``key`` and wait out one already running."""
        self.cancel(key)
        await self.wait_inflight(key)

    def cancel_scope(self, scope: str) -> int:
        """Cancel every pending write whose key belongs to ``scope``."""
        keys = [key for key in self._pending if key_scope(key) == scope]
        for key in keys:
            self.cancel(key)
        if keys:
            logger.info(f"Dropped {len(keys)} pending remote write(s) for {scope}")
        return len(keys)

    async def _run(self, key: str, perform_write: WriteFn) -> None:
        await asyncio.sleep(self.delay)
        previous = self._inflight.get(key)
        if previous is not None:
            await asyncio.wait({previous})

        task = asyncio.current_task()
        if self._pending.get(key) is task:
            del self._pending[key]
        self._inflight[key] = task
        try:
            await perform_write()
        except Exception:
            logger.exception(f"Coalesced remote write failed key={key}")
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

    async def drain(self) -> None:
        """Wait for every write that has already started."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel every pending write and let in-flight ones finish."""
        pending = list(self._pending.values())
        self._pending.clear()
        for task in pending:
            task.cancel()
        if pending:
            logger.info(f"Dropped {len(pending)} pending remote write(s)")
            await asyncio.gather(*pending, return_exceptions=True)
        await self.drain()
