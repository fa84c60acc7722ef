import os
import sys
from datetime import datetime, timedelta, timezone

import httpx
import pytest

# Ensure project root is on sys.path for `import greenhouse`
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(PROJECT_ROOT)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from greenhouse.api import GreenhouseApi  # noqa: E402
from greenhouse.timeutil import format_timestamp  # noqa: E402

BASE_URL = "http://greenhouse.test"
T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable stand-in for ``utcnow``."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def items_payload(*samples):
    """
    Build a range-query body from ``(when, value)`` pairs given oldest-first;
    the server sends them newest-first.
    """
    items = [{"when": format_timestamp(when), "value": value} for when, value in samples]
    return {"items": list(reversed(items))}


def make_api(handler) -> GreenhouseApi:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GreenhouseApi(BASE_URL, client=client)


@pytest.fixture
def clock():
    return FakeClock()
