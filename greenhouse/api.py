"""
Direct Greenhouse API client.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from .exceptions import MalformedResponseError, TransportError
from .schemas import LogLevel, LogRecord, StatType, TimeseriesRecord, RecordModel
from .timeutil import TimestampLike, format_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8096"
DEFAULT_TIMEOUT = 10.0

RecordT = TypeVar("RecordT", bound=RecordModel)


class GreenhouseApi:
    """
    Stateless translator between greenhouse queries and HTTP calls against
    one base URL.

    Range queries (``logs`` and ``history``) return records oldest-first.
    The server is assumed to send them newest-first (observed, not
    documented upstream), so the list is reversed here.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Args:
            base_url: scheme, host and optional port/path for every request
            timeout: request timeout in seconds (only used for an owned client)
            client: pre-built ``httpx.AsyncClient``; we never close one we
                did not create
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GreenhouseApi":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _get_json(self, path: str) -> Any:
        """
        GET ``path`` and decode the JSON body.

        Raises:
            TransportError: connection failure, timeout, or non-2xx status
            MalformedResponseError: body is not JSON
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(f"Greenhouse API returned {exc.response.status_code} for {url}")
            raise TransportError(
                url,
                f"HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(f"Failed to reach Greenhouse API at {url}: {exc}")
            raise TransportError(url, str(exc) or exc.__class__.__name__) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(url, "response body is not valid JSON") from exc

    async def _get_items(self, path: str, model: Type[RecordT]) -> List[RecordT]:
        data = await self._get_json(path)
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise MalformedResponseError(
                f"{self.base_url}{path}", "response has no 'items' array"
            )
        records = []
        for index, item in enumerate(items):
            try:
                records.append(model.model_validate(item))
            except ValidationError as exc:
                # skip the bad item, keep the rest of the window
                logger.warning(f"Skipping invalid item {index} from {path}: {exc.error_count()} error(s)")
        # Upstream sends newest-first.
        records.reverse()
        logger.debug("api.items path=%s items=%s", path, len(records))
        return records

    async def status(self) -> Any:
        """
        Fetch the status of the greenhouse, unmodified.
        """
        return await self._get_json("/status")

    async def logs(
        self,
        log_level: Union[LogLevel, str],
        start: TimestampLike,
        end: TimestampLike,
    ) -> List[LogRecord]:
        """
        Fetch logs at or above ``log_level`` for a date range.
        """
        level = LogLevel(log_level).value
        start_str = format_timestamp(start)
        end_str = format_timestamp(end)
        return await self._get_items(f"/logs/{level}/{start_str}/{end_str}", LogRecord)

    async def history(
        self,
        stat: Union[StatType, str],
        start: TimestampLike,
        end: TimestampLike,
    ) -> List[TimeseriesRecord]:
        """
        Fetch the history of ``stat`` for a date range.
        """
        stat_name = StatType(stat).value
        start_str = format_timestamp(start)
        end_str = format_timestamp(end)
        return await self._get_items(
            f"/{stat_name}/history/{start_str}/{end_str}", TimeseriesRecord
        )

    async def latest(self, stat: Union[StatType, str]) -> Any:
        """
        Fetch the latest value of ``stat`` and when it was recorded.
        """
        return await self._get_json(f"/{StatType(stat).value}/latest")
