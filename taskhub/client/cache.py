"""
A small query cache for the client.

Keys are tuples such as ``("tasks", {"projectId": ..., "status": "TODO"})``.
Dicts and lists inside a key are normalised to sorted tuples so equal
filters hit the same entry regardless of insertion order.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


def normalize_key(key) -> tuple:
    if not isinstance(key, (tuple, list)):
        key = (key,)
    return tuple(_freeze(part) for part in key)


def _freeze(value):
    if isinstance(value, dict):
        # None filters are the same as absent ones
        return tuple(sorted((k, _freeze(v)) for k, v in value.items() if v is not None))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, set):
        return tuple(sorted(_freeze(v) for v in value))
    return value


@dataclass
class CacheEntry:
    data: Any
    updated_at: float
    invalidated: bool = False


@dataclass
class QueryCache:
    stale_time: float = 30.0
    clock: Callable[[], float] = time.monotonic
    _entries: Dict[tuple, CacheEntry] = field(default_factory=dict, init=False)
    _inflight: Dict[tuple, asyncio.Task] = field(default_factory=dict, init=False)
    # bumped by invalidate() so a refresh started earlier lands as stale
    _generations: Dict[tuple, int] = field(default_factory=dict, init=False)

    def get(self, key) -> Optional[Any]:
        entry = self._entries.get(normalize_key(key))
        return entry.data if entry else None

    def set(self, key, data) -> None:
        self._entries[normalize_key(key)] = CacheEntry(data, self.clock())

    def is_stale(self, key) -> bool:
        entry = self._entries.get(normalize_key(key))
        return entry is None or self._stale(entry)

    def _stale(self, entry: CacheEntry) -> bool:
        return entry.invalidated or self.clock() - entry.updated_at >= self.stale_time

    async def fetch(self, key, fetcher: Fetcher) -> Any:
        """
        Fresh entries come from the cache. Stale entries are returned as-is
        while a background refresh runs. Misses wait for the fetcher, and
        concurrent misses for one key share a single request.
        """
        key = normalize_key(key)
        entry = self._entries.get(key)
        if entry is not None and not self._stale(entry):
            return entry.data
        task = self._start(key, fetcher)
        if entry is not None:
            return entry.data
        return await task

    def _start(self, key: tuple, fetcher: Fetcher) -> asyncio.Task:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, fetcher))
            self._inflight[key] = task
            task.add_done_callback(lambda t, key=key: self._finished(key, t))
        return task

    async def _load(self, key: tuple, fetcher: Fetcher) -> Any:
        generation = self._generations.get(key, 0)
        data = await fetcher()
        invalidated = self._generations.get(key, 0) != generation
        self._entries[key] = CacheEntry(data, self.clock(), invalidated=invalidated)
        return data

    def _finished(self, key: tuple, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Query %r failed: %s", key, task.exception())

    def invalidate(self, prefix=()) -> int:
        """Mark every entry whose key starts with `prefix` as stale. Returns how many matched."""
        prefix = normalize_key(prefix)
        matched = 0
        for key, entry in self._entries.items():
            if key[:len(prefix)] == prefix:
                entry.invalidated = True
                matched += 1
        self._bump(prefix)
        return matched

    def _bump(self, prefix: tuple) -> None:
        for key in self._inflight:
            if key[:len(prefix)] == prefix:
                self._generations[key] = self._generations.get(key, 0) + 1

    def remove(self, prefix=()) -> None:
        prefix = normalize_key(prefix)
        for key in [k for k in self._entries if k[:len(prefix)] == prefix]:
            del self._entries[key]
        self._bump(prefix)

    def clear(self) -> None:
        self._entries.clear()
        self._bump(())

    async def mutate(self, fn: Fetcher, invalidates: Iterable = ()) -> Any:
        """Run a mutation, then invalidate the given key prefixes. Nothing is applied optimistically."""
        result = await fn()
        for prefix in invalidates:
            self.invalidate(prefix)
        return result

    async def wait_idle(self) -> None:
        """Wait for background refreshes to settle."""
        while self._inflight:
            await asyncio.gather(*self._inflight.values(), return_exceptions=True)
