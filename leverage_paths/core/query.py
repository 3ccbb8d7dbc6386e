"""Keyed, stale-aware async memoization on top of an aiocache memory cache."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

from aiocache import Cache
from loguru import logger

from leverage_paths.core.config import get_query_stale_time_s
from leverage_paths.core.query_keys import QueryKey

RefetchType = Literal["active", "none"]
Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class _Entry:
    data: Any
    updated_at: float
    stale: bool = False


def _cache_key(key: QueryKey) -> str:
    return "|".join(key)


def _has_prefix(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryClient:
    """Memoizes fetchers by key; concurrent callers share one in-flight fetch.

    A key stays "active" while its fetcher is registered, and invalidating an
    active key refetches it immediately.
    """

    def __init__(self, *, stale_time_s: float | None = None, cache: Any | None = None):
        self.stale_time_s = get_query_stale_time_s() if stale_time_s is None else stale_time_s
        self._cache = cache or Cache(Cache.MEMORY)
        self._keys: set[QueryKey] = set()
        self._fetchers: dict[QueryKey, Fetcher] = {}
        self._inflight: dict[QueryKey, asyncio.Task] = {}

    async def _get_entry(self, key: QueryKey) -> _Entry | None:
        return await self._cache.get(_cache_key(key))

    def _is_fresh(self, entry: _Entry, stale_time_s: float) -> bool:
        return not entry.stale and (time.monotonic() - entry.updated_at) < stale_time_s

    async def get_data(self, key: QueryKey) -> Any:
        entry = await self._get_entry(key)
        return entry.data if entry is not None else None

    async def set_data(self, key: QueryKey, data: Any) -> None:
        self._keys.add(key)
        await self._cache.set(_cache_key(key), _Entry(data=data, updated_at=time.monotonic()))

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        *,
        stale_time_s: float | None = None,
        enabled: bool = True,
    ) -> Any:
        """Cached data for ``key`` while fresh, else the result of ``fetcher``.

        Disabled queries return None without fetching.
        """
        if not enabled:
            return None
        self._fetchers[key] = fetcher
        stale_time_s = self.stale_time_s if stale_time_s is None else stale_time_s

        entry = await self._get_entry(key)
        if entry is not None and self._is_fresh(entry, stale_time_s):
            return entry.data
        return await self._refetch(key, fetcher)

    async def _refetch(self, key: QueryKey, fetcher: Fetcher) -> Any:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, fetcher))
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _run(self, key: QueryKey, fetcher: Fetcher) -> Any:
        try:
            data = await fetcher()
            await self.set_data(key, data)
            return data
        finally:
            self._inflight.pop(key, None)

    async def invalidate(self, prefix: QueryKey, *, refetch_type: RefetchType = "active") -> None:
        matched = [k for k in self._keys if _has_prefix(k, prefix)]
        for key in matched:
            entry = await self._get_entry(key)
            if entry is not None:
                entry.stale = True
                await self._cache.set(_cache_key(key), entry)
        logger.debug(f"Invalidated {len(matched)} queries under {'/'.join(prefix)}")

        if refetch_type != "active":
            return
        refetch = [k for k in matched if k in self._fetchers]
        results = await asyncio.gather(
            *(self._refetch(k, self._fetchers[k]) for k in refetch),
            return_exceptions=True,
        )
        for key, result in zip(refetch, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(f"Refetch of {'/'.join(key)} failed: {result}")

    def deactivate(self, key: QueryKey) -> None:
        self._fetchers.pop(key, None)

    async def clear(self) -> None:
        await self._cache.clear()
        self._keys.clear()
        self._fetchers.clear()
