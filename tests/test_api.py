"""Unit tests for the Greenhouse API client

Covers request paths, response normalization and error mapping.
"""
import asyncio
from datetime import timedelta

import httpx
import pytest

from greenhouse.api import GreenhouseApi
from greenhouse.exceptions import InvalidDateError, MalformedResponseError, TransportError
from greenhouse.schemas import LogLevel, LogRecord, StatType, TimeseriesRecord

from conftest import BASE_URL, T0, items_payload, make_api

START = T0 - timedelta(days=1)
START_STR = "2024-04-30T12:00:00+00:00"
END_STR = "2024-05-01T12:00:00+00:00"


class Recorder:
    """MockTransport handler that remembers every request."""

    def __init__(self, response):
        self.response = response
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if callable(self.response):
            return self.response(request)
        return self.response

    @property
    def paths(self):
        return [request.url.path for request in self.requests]


def test_status_returns_payload_unmodified():
    payload = {"temperature": 21.5, "fan": "on", "nested": {"a": [1, 2]}}
    handler = Recorder(httpx.Response(200, json=payload))

    async def _run():
        return await make_api(handler).status()

    assert asyncio.run(_run()) == payload
    assert handler.paths == ["/status"]
    assert str(handler.requests[0].url).startswith(BASE_URL)


def test_history_requests_canonical_range_and_reverses_items():
    body = items_payload((T0 - timedelta(hours=2), 20.0), (T0 - timedelta(hours=1), 21.0))
    body["items"][0]["unit"] = "C"
    handler = Recorder(httpx.Response(200, json=body))

    async def _run():
        return await make_api(handler).history(StatType.TEMPERATURE, START, T0)

    records = asyncio.run(_run())
    assert handler.paths == [f"/temperature/history/{START_STR}/{END_STR}"]
    assert all(isinstance(record, TimeseriesRecord) for record in records)
    # oldest-first after the reversal
    assert [record.value for record in records] == [20.0, 21.0]
    assert records[0].when == T0 - timedelta(hours=2)
    # extra fields from the server survive
    assert records[1].model_extra == {"unit": "C"}


def test_history_accepts_string_dates_and_stat_names():
    handler = Recorder(httpx.Response(200, json={"items": []}))

    async def _run():
        return await make_api(handler).history("humidity", "2024-04-30T12:00:00Z", "2024-05-01 12:00:00")

    assert asyncio.run(_run()) == []
    assert handler.paths == [f"/humidity/history/{START_STR}/{END_STR}"]


def test_logs_uses_level_in_path_and_parses_records():
    body = {
        "items": [
            {"when": "2024-05-01T11:00:00Z", "level": "error", "message": "pump stalled"},
            {"when": "2024-05-01T10:00:00Z", "level": "warn", "message": "water low"},
        ]
    }
    handler = Recorder(httpx.Response(200, json=body))

    async def _run():
        return await make_api(handler).logs("WARNING", START, T0)

    records = asyncio.run(_run())
    assert handler.paths == [f"/logs/warn/{START_STR}/{END_STR}"]
    assert all(isinstance(record, LogRecord) for record in records)
    assert [record.message for record in records] == ["water low", "pump stalled"]
    assert records[1].level is LogLevel.ERROR


def test_latest_returns_raw_payload():
    payload = {"value": 55.0, "when": "2024-05-01T11:59:00Z"}
    handler = Recorder(httpx.Response(200, json=payload))

    async def _run():
        return await make_api(handler).latest(StatType.WATER)

    assert asyncio.run(_run()) == payload
    assert handler.paths == ["/water/latest"]


def test_trailing_slash_in_base_url_is_stripped():
    handler = Recorder(httpx.Response(200, json={}))
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    api = GreenhouseApi(BASE_URL + "/", client=client)

    asyncio.run(api.status())
    assert api.base_url == BASE_URL
    assert handler.paths == ["/status"]


def test_non_2xx_raises_transport_error_with_status():
    handler = Recorder(httpx.Response(500, text="boom"))

    async def _run():
        await make_api(handler).status()

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.status_code == 500
    assert exc_info.value.url == f"{BASE_URL}/status"


def test_network_failure_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def _run():
        await make_api(handler).history(StatType.FAN, START, T0)

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.status_code is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"rows": []}),
        httpx.Response(200, json={"items": "nope"}),
        httpx.Response(200, json=[1, 2, 3]),
        httpx.Response(200, text="<html>not json</html>"),
    ],
)
def test_malformed_range_responses(response):
    handler = Recorder(response)

    async def _run():
        await make_api(handler).history(StatType.TEMPERATURE, START, T0)

    with pytest.raises(MalformedResponseError):
        asyncio.run(_run())


def test_invalid_items_are_skipped_and_the_rest_kept():
    body = {
        "items": [
            {"when": "2024-05-01T11:30:00Z", "value": 22.0},
            {"when": "2024-05-01T11:20:00Z", "value": None},
            {"when": "yesterday-ish", "value": 1},
            {"when": "2024-05-01T11:10:00Z"},
            {"when": "2024-05-01T11:00:00Z", "value": 21.0},
        ]
    }
    handler = Recorder(httpx.Response(200, json=body))

    async def _run():
        return await make_api(handler).history(StatType.TEMPERATURE, START, T0)

    records = asyncio.run(_run())
    assert [record.value for record in records] == [21.0, 22.0]


def test_invalid_log_items_are_skipped():
    body = {
        "items": [
            {"when": "2024-05-01T11:00:00Z", "level": "shouting", "message": "??"},
            {"when": "2024-05-01T10:00:00Z", "level": "info", "message": "fan on"},
        ]
    }
    handler = Recorder(httpx.Response(200, json=body))

    async def _run():
        return await make_api(handler).logs(LogLevel.DEBUG, START, T0)

    records = asyncio.run(_run())
    assert [record.message for record in records] == ["fan on"]


def test_nanosecond_timestamps_are_parsed():
    body = {"items": [{"when": "2024-05-01T11:00:00.123456789Z", "value": 20.0}]}
    handler = Recorder(httpx.Response(200, json=body))

    async def _run():
        return await make_api(handler).history(StatType.TEMPERATURE, START, T0)

    (record,) = asyncio.run(_run())
    assert record.when == T0.replace(hour=11, microsecond=123456)


def test_invalid_dates_fail_before_any_request():
    handler = Recorder(httpx.Response(200, json={"items": []}))

    async def _run():
        await make_api(handler).logs(LogLevel.INFO, "last tuesday", T0)

    with pytest.raises(InvalidDateError):
        asyncio.run(_run())
    assert handler.requests == []


def test_unknown_stat_is_rejected():
    handler = Recorder(httpx.Response(200, json={}))

    async def _run():
        await make_api(handler).latest("pressure")

    with pytest.raises(ValueError):
        asyncio.run(_run())
    assert handler.requests == []


def test_injected_client_is_left_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    api = GreenhouseApi(BASE_URL, client=client)

    async def _run():
        async with api:
            pass

    asyncio.run(_run())
    assert not client.is_closed


def test_owned_client_is_closed():
    api = GreenhouseApi(BASE_URL)

    asyncio.run(api.aclose())
    assert api._client.is_closed
