"""
Shared fixtures: a fixed local "now", fast HTTP retries and mock transports.
"""
import json
from datetime import datetime

import httpx
import pytest

from epg_scraper.config import settings
from epg_scraper.services.source_registry import reset_source_registry
from epg_scraper.utils.timezone import local_zone


@pytest.fixture(autouse=True)
def fast_http(monkeypatch):
    """Single attempt, no backoff sleeps."""
    monkeypatch.setattr(settings, "http_max_retries", 1)
    monkeypatch.setattr(settings, "http_backoff_factor", 0.0)


@pytest.fixture(autouse=True)
def clean_registry():
    reset_source_registry()
    yield
    reset_source_registry()


@pytest.fixture
def now() -> datetime:
    """2024-05-01 10:00 local time, after the tvmao 02:00 cutoff."""
    return datetime(2024, 5, 1, 10, 0, tzinfo=local_zone())


def local_dt(year, month, day, hour=0, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=local_zone())


def json_response(payload, status_code: int = 200, encoding: str = "utf-8") -> httpx.Response:
    body = json.dumps(payload, ensure_ascii=False).encode(encoding)
    return httpx.Response(status_code, content=body)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
