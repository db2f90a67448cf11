# storefront/cache/query_cache.py
import asyncio
import inspect
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Mapping, Tuple, Union

from pydantic import TypeAdapter

from storefront.utils.logging import get_logger
from storefront.utils.settings import QUERY_STALE_SECONDS

logger = get_logger(__name__)

QueryKey = Tuple[Hashable, ...]
Fetcher = Union[Callable[[], Any], Callable[[], Awaitable[Any]]]


def as_key(key) -> QueryKey:
    if isinstance(key, tuple):
        return key
    if isinstance(key, list):
        return tuple(key)
    return (key,)


@dataclass
class _Entry:
    data: Any
    updated_at: float


class QueryCache:
    """
    Key-value store of server state, keyed by semantic tags.
    - get / set (value or updater function)
    - fetch with de-duplication of concurrent loads and a stale time
    - cancellation of in-flight refreshes, whose result is then never written
    All reads and writes are expected to happen on the event loop thread.
    """

    def __init__(self, stale_time: float = QUERY_STALE_SECONDS):
        self.stale_time = stale_time
        self._entries: Dict[QueryKey, _Entry] = {}
        self._refreshes: Dict[QueryKey, asyncio.Task] = {}

    # reads
    def get_query_data(self, key) -> Any:
        entry = self._entries.get(as_key(key))
        return entry.data if entry else None

    def has_query(self, key) -> bool:
        return as_key(key) in self._entries

    def is_stale(self, key) -> bool:
        entry = self._entries.get(as_key(key))
        if entry is None:
            return True
        return time.monotonic() - entry.updated_at >= self.stale_time

    def keys(self):
        return list(self._entries)

    # writes
    def set_query_data(self, key, value) -> Any:
        """Store `value`, or the result of calling it with the current data."""
        key = as_key(key)
        if callable(value):
            value = value(self.get_query_data(key))
        self._entries[key] = _Entry(data=value, updated_at=time.monotonic())
        return value

    def remove_query(self, key) -> None:
        self._entries.pop(as_key(key), None)

    def invalidate_queries(self, key) -> None:
        key = as_key(key)
        for k, entry in self._entries.items():
            if k[: len(key)] == key:
                entry.updated_at = float("-inf")

    def clear(self) -> None:
        self._entries.clear()

    # refreshes
    def is_fetching(self, key) -> bool:
        task = self._refreshes.get(as_key(key))
        return task is not None and not task.done()

    async def cancel_queries(self, key) -> int:
        key = as_key(key)
        tasks = [
            task
            for k, task in self._refreshes.items()
            if k[: len(key)] == key and not task.done()
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} refresh(es) for {key}")
        return len(tasks)

    async def fetch_query(self, key, fetcher: Fetcher, *, force: bool = False) -> Any:
        key = as_key(key)

        if not force and not self.is_stale(key):
            return self._entries[key].data

        task = self._refreshes.get(key)
        if task is None or task.done():
            task = asyncio.create_task(self._run_fetch(key, fetcher))
            self._refreshes[key] = task

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            #refresh cancelled by a mutation: hand back whatever the cache holds now
            if task.cancelled():
                return self.get_query_data(key)
            raise

    async def _run_fetch(self, key: QueryKey, fetcher: Fetcher) -> Any:
        try:
            if inspect.iscoroutinefunction(fetcher):
                data = await fetcher()
            else:
                data = await asyncio.to_thread(fetcher)
        finally:
            if self._refreshes.get(key) is asyncio.current_task():
                del self._refreshes[key]

        self.set_query_data(key, data)
        logger.info(f"Fetched {key}")
        return data

    # persistence
    def dehydrate(self, types: Mapping[QueryKey, Any]) -> Dict[str, Any]:
        state = {}
        for key, entry in self._entries.items():
            if key not in types:
                continue
            adapter = TypeAdapter(types[key])
            state[json.dumps(list(key))] = adapter.dump_python(
                entry.data, mode="json", by_alias=True
            )
        return state

    def hydrate(self, state: Mapping[str, Any], types: Mapping[QueryKey, Any]) -> None:
        """Validate every entry first, then write them all."""
        decoded = {}
        for raw_key, raw_value in state.items():
            key = as_key(json.loads(raw_key))
            if key not in types:
                continue
            decoded[key] = TypeAdapter(types[key]).validate_python(raw_value)

        now = time.monotonic()
        for key, value in decoded.items():
            self._entries[key] = _Entry(data=value, updated_at=now)
