"""
Incremental date-range cache for time-series queries.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from .timeutil import format_timestamp, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")

Getter = Callable[[datetime, datetime], Awaitable[Sequence[T]]]


class DateLookupCache(Generic[T]):
    """
    Caches already-fetched results of a date-range query and appends new
    results on every fetch.

    Each fetch asks only for the span between the previous fetch's end and
    now. Fetches on one instance run strictly one at a time, in the order
    they were requested.

    The boundary moves forward as soon as a fetch is issued, so a window
    whose query fails is skipped rather than retried on the next fetch.
    """

    def __init__(
        self,
        initial_time_ago_days: int,
        getter: Getter,
        clock: Callable[[], datetime] = utcnow,
        name: str = "",
    ) -> None:
        """
        Args:
            initial_time_ago_days: how far back the very first fetch reaches
            getter: ``async (start, end) -> records`` query function
            clock: source of "now", injectable for tests
            name: label used in log lines
        """
        if initial_time_ago_days < 0:
            raise ValueError("initial_time_ago_days must be >= 0")
        self.getter = getter
        self.name = name
        self._initial_time_ago_days = initial_time_ago_days
        self._clock = clock
        self._last_end_time: Optional[datetime] = None
        self._cache: List[T] = []
        self._lock = asyncio.Lock()

    @property
    def initial_time_ago_days(self) -> int:
        return self._initial_time_ago_days

    @property
    def last_end_time(self) -> Optional[datetime]:
        return self._last_end_time

    @property
    def records(self) -> List[T]:
        return list(self._cache)

    @property
    def is_fetching(self) -> bool:
        return self._lock.locked()

    async def fetch(self) -> List[T]:
        """
        Fetch the next set of data, waiting for any earlier fetches on this
        cache to finish first.
        """
        async with self._lock:
            return await self._fetch_now()

    async def _fetch_now(self) -> List[T]:
        now = self._clock()
        if self._last_end_time is None:
            start = now - timedelta(days=self._initial_time_ago_days)
            end = now
        else:
            start = self._last_end_time
            # Never move the boundary backwards if the clock does.
            end = max(now, start)
        self._last_end_time = end

        if format_timestamp(start) == format_timestamp(end):
            return list(self._cache)

        data = await self.getter(start, end)
        self._cache.extend(data)
        logger.debug(
            "cache.fetch series=%s start=%s end=%s items=%s total=%s",
            self.name or "?",
            format_timestamp(start),
            format_timestamp(end),
            len(data),
            len(self._cache),
        )
        return list(self._cache)
