"""Memoizing request cache shared by concurrent artifact lookups."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

logger = logging.getLogger(__name__)


class RequestCache:
    """Cache async computations keyed by ``(kind, key)``.

    Concurrent requests for the same key share one in-flight task, so each key
    is computed at most once. A failed computation stays cached and re-raises
    for every caller.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, Hashable], asyncio.Future[Any]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, cache_key: tuple[str, Hashable]) -> bool:
        return cache_key in self._entries

    async def request(
        self, kind: str, key: Hashable, compute: Callable[[], Awaitable[Any]]
    ) -> Any:
        cache_key = (kind, key)
        entry = self._entries.get(cache_key)
        if entry is None:
            self.misses += 1
            logger.debug("Computing %s for %r", kind, key)
            entry = asyncio.ensure_future(compute())
            self._entries[cache_key] = entry
        else:
            self.hits += 1
        return await asyncio.shield(entry)
