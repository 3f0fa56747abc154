"""Expiring in-process cache for computed rating snapshots."""

from __future__ import annotations

import logging
import time
from asyncio import Lock
from typing import Any, Awaitable, Callable, Hashable

from .config import RANKINGS_TTL_SECONDS

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value store whose entries expire ``ttl_seconds`` after being set.

    :meth:`get_or_build` serialises rebuilds, so concurrent requests that find
    the value stale wait for one recalculation instead of each running their own.
    """

    def __init__(self, ttl_seconds: float = 60.0) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._build_lock = Lock()

    def _fresh(self, key: Hashable) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: Hashable, value: Any, ttl_seconds: float | None = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = (time.monotonic() + ttl, value)

    async def get_or_build(
        self,
        key: Hashable,
        build: Callable[[], Awaitable[Any]],
        *,
        refresh: bool = False,
    ) -> Any:
        """Return the cached value for ``key``, awaiting ``build()`` when missing."""

        if not refresh:
            value = self._fresh(key)
            if value is not None:
                return value

        async with self._build_lock:
            if refresh:
                # A failed rebuild must not leave the old value being served.
                await self.invalidate(key)
            else:
                # Another request may have rebuilt it while we waited.
                value = self._fresh(key)
                if value is not None:
                    return value
            started = time.monotonic()
            value = await build()
            await self.set(key, value)
            logger.info("Rebuilt %r in %.3fs", key, time.monotonic() - started)
            return value

    async def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()


ratings_cache = TTLCache(ttl_seconds=RANKINGS_TTL_SECONDS)
