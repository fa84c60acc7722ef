"""
Runtime configuration for the Greenhouse dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union
import os

from .api import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .facade import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_LOOKUP_DAYS,
    DEFAULT_STAT_LOOKUP_DAYS,
    SERIES_NAMES,
)
from .schemas import LogLevel


def _env(name: str, default: object) -> str:
    return os.getenv(name, str(default))


@dataclass
class Settings:
    """
    Simple settings object populated from environment variables.

    Values are read when the object is created, so tests can monkeypatch the
    environment and build a fresh ``Settings()``.
    """

    # Remote greenhouse API
    base_url: str = field(default_factory=lambda: _env("GREENHOUSE_API_URL", DEFAULT_BASE_URL))
    request_timeout: float = field(
        default_factory=lambda: _env("GREENHOUSE_REQUEST_TIMEOUT", DEFAULT_TIMEOUT)
    )

    # Initial lookup windows
    stat_days: int = field(
        default_factory=lambda: _env("GREENHOUSE_STAT_DAYS", DEFAULT_STAT_LOOKUP_DAYS)
    )
    log_days: int = field(
        default_factory=lambda: _env("GREENHOUSE_LOG_DAYS", DEFAULT_LOG_LOOKUP_DAYS)
    )
    log_level: LogLevel = field(
        default_factory=lambda: _env("GREENHOUSE_LOG_LEVEL", DEFAULT_LOG_LEVEL.value)
    )

    # Dashboard polling/rendering
    poll_interval: float = field(default_factory=lambda: _env("GREENHOUSE_POLL_INTERVAL", 2.0))
    poll_series: List[str] = field(
        default_factory=lambda: _env("GREENHOUSE_POLL_SERIES", "temperature")
    )
    chart_points: int = field(default_factory=lambda: _env("GREENHOUSE_CHART_POINTS", 300))
    host: str = field(default_factory=lambda: _env("DASHBOARD_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env("DASHBOARD_PORT", 8000))

    def __post_init__(self) -> None:
        self.base_url = str(self.base_url).rstrip("/")
        self.request_timeout = float(self.request_timeout)
        self.stat_days = int(self.stat_days)
        self.log_days = int(self.log_days)
        self.log_level = LogLevel(self.log_level)
        self.poll_interval = float(self.poll_interval)
        self.poll_series = self._parse_series(self.poll_series)
        self.chart_points = int(self.chart_points)
        self.port = int(self.port)

        if self.stat_days <= 0:
            raise ValueError("GREENHOUSE_STAT_DAYS must be a positive integer")
        if self.log_days <= 0:
            raise ValueError("GREENHOUSE_LOG_DAYS must be a positive integer")
        if self.request_timeout <= 0:
            raise ValueError("GREENHOUSE_REQUEST_TIMEOUT must be positive")
        if self.poll_interval < 0:
            raise ValueError("GREENHOUSE_POLL_INTERVAL must not be negative")
        if self.chart_points <= 0:
            raise ValueError("GREENHOUSE_CHART_POINTS must be positive")

    @staticmethod
    def _parse_series(value: Union[str, List[str]]) -> List[str]:
        if isinstance(value, str):
            names = [name.strip().lower() for name in value.split(",") if name.strip()]
        else:
            names = [str(name).strip().lower() for name in value]
        unknown = [name for name in names if name not in SERIES_NAMES]
        if unknown:
            raise ValueError(f"Unknown poll series: {', '.join(unknown)}")
        return names


# Single global settings object imported by other modules.
settings = Settings()
