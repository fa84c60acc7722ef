"""
Greenhouse facade: one API client plus a running history per series.
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from .api import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, GreenhouseApi
from .cache import DateLookupCache
from .schemas import LogLevel, StatType
from .timeutil import utcnow

if TYPE_CHECKING:  # pragma: no cover
    from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_STAT_LOOKUP_DAYS = 7
DEFAULT_LOG_LOOKUP_DAYS = 7
DEFAULT_LOG_LEVEL = LogLevel.INFO

LOGS_SERIES = "logs"
SERIES_NAMES = (LOGS_SERIES,) + tuple(stat.value for stat in StatType)


class Greenhouse:
    """
    API client that keeps a running history of logs and stats.

    Each series (logs, temperature, humidity, fan, water) has its own
    ``DateLookupCache``. Resetting a series group swaps in fresh caches and
    leaves the others untouched.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        stat_days: int = DEFAULT_STAT_LOOKUP_DAYS,
        log_level: Union[LogLevel, str] = DEFAULT_LOG_LEVEL,
        log_days: int = DEFAULT_LOG_LOOKUP_DAYS,
        *,
        api: Optional[GreenhouseApi] = None,
        clock: Callable[[], datetime] = utcnow,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api = api or GreenhouseApi(base_url, timeout=timeout)
        self._clock = clock
        self._stats: Dict[StatType, DateLookupCache] = {}

        # prime our caches
        self.reset_log_history(log_level, log_days)
        self.reset_stat_history(stat_days)

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs: Any) -> "Greenhouse":
        return cls(
            base_url=settings.base_url,
            stat_days=settings.stat_days,
            log_level=settings.log_level,
            log_days=settings.log_days,
            timeout=settings.request_timeout,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self.api.aclose()

    async def __aenter__(self) -> "Greenhouse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ caches

    def _stat_cache(self, lookup_days: int, stat: StatType) -> DateLookupCache:
        return DateLookupCache(
            lookup_days,
            functools.partial(self.api.history, stat),
            clock=self._clock,
            name=stat.value,
        )

    def reset_log_history(self, log_level: Union[LogLevel, str], lookup_days: int) -> None:
        """
        Drop the cached logs so that logs of a different level (or a
        different initial window) are fetched from now on.
        """
        level = LogLevel(log_level)
        self._logs = DateLookupCache(
            lookup_days,
            functools.partial(self.api.logs, level),
            clock=self._clock,
            name=LOGS_SERIES,
        )
        self._log_level = level
        self._log_days = lookup_days
        logger.info("history.reset series=logs level=%s days=%s", level.value, lookup_days)

    def reset_stat_history(self, lookup_days: int) -> None:
        """
        Drop every cached stat history and set the initial window, in days.
        """
        self._stats = {stat: self._stat_cache(lookup_days, stat) for stat in StatType}
        self._stat_days = lookup_days
        logger.info("history.reset series=stats days=%s", lookup_days)

    @property
    def log_level(self) -> LogLevel:
        return self._log_level

    @property
    def log_days(self) -> int:
        return self._log_days

    @property
    def stat_days(self) -> int:
        return self._stat_days

    def cache_for(self, series: Union[StatType, str]) -> DateLookupCache:
        """Return the live cache for ``series`` ("logs" or a stat name)."""
        if series == LOGS_SERIES:
            return self._logs
        try:
            return self._stats[StatType(series)]
        except ValueError:
            raise KeyError(f"Unknown series: {series}") from None

    def records(self, series: Union[StatType, str]) -> List[Any]:
        return self.cache_for(series).records

    async def fetch(self, series: Union[StatType, str]) -> List[Any]:
        return await self.cache_for(series).fetch()

    # --------------------------------------------------------------- direct calls

    async def status(self) -> Any:
        """Fetch the status of the greenhouse (never cached)."""
        return await self.api.status()

    async def latest(self, stat: Union[StatType, str]) -> Any:
        """Fetch the latest value of ``stat`` (never cached)."""
        return await self.api.latest(stat)

    # ------------------------------------------------------------------ series

    async def logs(self) -> List[Any]:
        return await self._logs.fetch()

    async def humidity(self) -> List[Any]:
        return await self._stats[StatType.HUMIDITY].fetch()

    async def temperature(self) -> List[Any]:
        return await self._stats[StatType.TEMPERATURE].fetch()

    async def fan(self) -> List[Any]:
        return await self._stats[StatType.FAN].fetch()

    async def water(self) -> List[Any]:
        return await self._stats[StatType.WATER].fetch()
