"""
Greenhouse API client with per-series incremental history caches.
"""

from .api import GreenhouseApi
from .cache import DateLookupCache
from .exceptions import (
    GreenhouseError,
    InvalidDateError,
    MalformedResponseError,
    TransportError,
)
from .facade import Greenhouse
from .schemas import LogLevel, LogRecord, StatType, TimeseriesRecord

__all__ = [
    "DateLookupCache",
    "Greenhouse",
    "GreenhouseApi",
    "GreenhouseError",
    "InvalidDateError",
    "LogLevel",
    "LogRecord",
    "MalformedResponseError",
    "StatType",
    "TimeseriesRecord",
    "TransportError",
]
