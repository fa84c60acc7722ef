"""
Pydantic models for dashboard request payloads.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from greenhouse.schemas import LogLevel


class ResetStatsRequest(BaseModel):
    """Payload to restart every stat history with a new initial window."""

    lookup_days: int = Field(..., ge=0)


class ResetLogsRequest(BaseModel):
    """
    Payload to restart the log history at a different minimum level.
    """

    level: LogLevel
    lookup_days: int = Field(..., ge=0)
