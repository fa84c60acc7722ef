"""
Pydantic models and enums for Greenhouse API payloads.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .timeutil import parse_timestamp


class LogLevel(str, Enum):
    """
    Minimum log level accepted by the ``/logs`` endpoint.
    """

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def _missing_(cls, value: object) -> Optional["LogLevel"]:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "warning":
                lowered = "warn"
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def at_least(self, other: "LogLevel") -> bool:
        return self.severity >= LogLevel(other).severity


_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}


class StatType(str, Enum):
    """Statistics the greenhouse keeps a history for."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    WATER = "water"
    FAN = "fan"


class RecordModel(BaseModel):
    # Unknown server fields are kept; cached records are never mutated.
    model_config = ConfigDict(extra="allow", frozen=True)

    when: datetime

    @field_validator("when", mode="before")
    @classmethod
    def parse_when(cls, value: Any) -> datetime:
        return parse_timestamp(value)


class TimeseriesRecord(RecordModel):
    """
    One sample from a ``/{stat}/history`` response.
    """

    value: float


class LogRecord(RecordModel):
    """
    One entry from a ``/logs`` response.
    """

    level: LogLevel
    message: str
