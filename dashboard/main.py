"""
Greenhouse Web Dashboard Main Application
Polls the greenhouse API on a timer and serves a temperature chart.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
import uvicorn

from greenhouse import Greenhouse, GreenhouseError, StatType, TransportError
from greenhouse.config import Settings, settings as default_settings
from greenhouse.facade import SERIES_NAMES
from greenhouse.timeutil import format_timestamp, utcnow

from .chart import build_chart
from .schemas import ResetLogsRequest, ResetStatsRequest

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("greenhouse.requests")

TEMPLATES_DIR = Path(__file__).parent / "templates"


def celsius_to_fahrenheit(celsius: float) -> float:
    return round(celsius * 9 / 5 + 32, 2)


def serialize_records(series: str, records: Sequence[Any], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Convert cached records to JSON-ready dicts, newest ``limit`` only.

    Temperature records gain a derived ``fahrenheit`` field; the cached
    record itself is left alone.
    """
    if limit is not None:
        records = records[-limit:]
    items = []
    for record in records:
        item = record.model_dump(mode="json")
        if series == StatType.TEMPERATURE.value:
            item["fahrenheit"] = celsius_to_fahrenheit(record.value)
        items.append(item)
    return items


async def poll_once(greenhouse: Greenhouse, series_names: Sequence[str]) -> Dict[str, Optional[int]]:
    """
    Fetch every polled series once. A failed series is logged and reported
    as ``None``; its window is not retried.
    """
    counts: Dict[str, Optional[int]] = {}
    for name in series_names:
        try:
            counts[name] = len(await greenhouse.fetch(name))
        except GreenhouseError as exc:
            logger.warning(f"Poll of {name} failed: {exc}")
            counts[name] = None
    return counts


async def poll_loop(app: FastAPI, settings: Settings) -> None:
    """Background task that pulls new data for each polled series."""
    while True:
        try:
            counts = await poll_once(app.state.greenhouse, settings.poll_series)
            app.state.last_poll = utcnow()
            logger.debug("poll counts=%s", counts)
        except Exception as exc:  # log and keep the loop alive
            logger.exception("poll_loop error: %s", exc)
        await asyncio.sleep(settings.poll_interval)


def _api_error(exc: GreenhouseError) -> HTTPException:
    if isinstance(exc, TransportError):
        return HTTPException(status_code=503, detail=f"Failed to reach greenhouse API: {exc}")
    return HTTPException(status_code=502, detail=f"Bad response from greenhouse API: {exc}")


def _check_series(series: str) -> str:
    if series not in SERIES_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown series: {series}")
    return series


def create_app(
    settings: Optional[Settings] = None,
    greenhouse: Optional[Greenhouse] = None,
) -> FastAPI:
    """
    Build and configure the FastAPI application. Passing ``greenhouse``
    lets tests plug in a facade backed by a mock transport.
    """
    settings = settings or default_settings
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        gh = greenhouse or Greenhouse.from_settings(settings)
        app.state.greenhouse = gh
        app.state.last_poll = None
        app.state.poll_task = None

        if settings.poll_interval > 0 and settings.poll_series:
            app.state.poll_task = asyncio.create_task(poll_loop(app, settings))

        logger.info(
            "Greenhouse dashboard started api=%s poll=%.1fs series=%s",
            gh.api.base_url,
            settings.poll_interval,
            ",".join(settings.poll_series) or "-",
        )

        yield

        logger.info("Shutting down greenhouse dashboard...")
        task = app.state.poll_task
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await gh.aclose()

    app = FastAPI(title="Greenhouse Dashboard", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time
        request_logger.info(
            "http path=%s status=%s duration=%.3fs",
            request.url.path,
            response.status_code,
            duration,
        )
        return response

    def get_greenhouse() -> Greenhouse:
        gh: Greenhouse = app.state.greenhouse
        return gh

    # Web UI routes

    @app.get("/", response_class=HTMLResponse)
    async def dashboard(request: Request, gh: Greenhouse = Depends(get_greenhouse)):
        """Temperature chart page."""
        records = gh.records(StatType.TEMPERATURE)[-settings.chart_points:]
        chart = build_chart(records)
        latest = chart.latest
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "chart": chart,
                "latest": latest,
                "latest_when": format_timestamp(latest.when) if latest else None,
                "latest_fahrenheit": celsius_to_fahrenheit(latest.value) if latest else None,
                "point_count": len(records),
                "refresh_seconds": max(int(settings.poll_interval), 1),
            },
        )

    # API routes

    @app.get("/api/status")
    async def api_status(gh: Greenhouse = Depends(get_greenhouse)):
        """Proxy the greenhouse status."""
        try:
            return await gh.status()
        except GreenhouseError as exc:
            raise _api_error(exc)

    @app.get("/api/series/{series}")
    async def api_series(
        series: str,
        limit: Optional[int] = Query(None, ge=1, le=10000),
        gh: Greenhouse = Depends(get_greenhouse),
    ):
        """Cached records for a series, without fetching."""
        _check_series(series)
        return serialize_records(series, gh.records(series), limit)

    @app.post("/api/series/{series}/fetch")
    async def api_series_fetch(
        series: str,
        limit: Optional[int] = Query(None, ge=1, le=10000),
        gh: Greenhouse = Depends(get_greenhouse),
    ):
        """Fetch the next window for a series and return its records."""
        _check_series(series)
        try:
            records = await gh.fetch(series)
        except GreenhouseError as exc:
            raise _api_error(exc)
        return serialize_records(series, records, limit)

    @app.post("/api/history/reset")
    async def api_reset_stats(payload: ResetStatsRequest, gh: Greenhouse = Depends(get_greenhouse)):
        gh.reset_stat_history(payload.lookup_days)
        return {"stat_days": gh.stat_days}

    @app.post("/api/logs/reset")
    async def api_reset_logs(payload: ResetLogsRequest, gh: Greenhouse = Depends(get_greenhouse)):
        gh.reset_log_history(payload.level, payload.lookup_days)
        return {"log_level": gh.log_level.value, "log_days": gh.log_days}

    @app.get("/api/{stat}/latest")
    async def api_latest(stat: str, gh: Greenhouse = Depends(get_greenhouse)):
        """Proxy the latest value of a stat."""
        try:
            stat_type = StatType(stat)
        except ValueError:
            raise HTTPException(status_code=404, detail=f"Unknown stat: {stat}")
        try:
            return await gh.latest(stat_type)
        except GreenhouseError as exc:
            raise _api_error(exc)

    @app.get("/health")
    async def health(gh: Greenhouse = Depends(get_greenhouse)):
        """Health check endpoint."""
        task = app.state.poll_task
        polling = task is not None and not task.done()
        last_poll = app.state.last_poll
        return {
            "status": "healthy" if polling or task is None else "degraded",
            "polling": polling,
            "last_poll": format_timestamp(last_poll) if last_poll else None,
            "series": {name: len(gh.records(name)) for name in SERIES_NAMES},
        }

    return app


# Uvicorn expects a module-level variable named "app".
app = create_app()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "dashboard.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
