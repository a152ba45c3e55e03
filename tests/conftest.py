"""Shared fixtures: a fake requests session for the FRED client and an in-memory sink.

Classes:
    DummyResponse: Minimal stand-in for ``requests.Response``.
    DummySession: Records outbound requests and returns a canned response.
    UnreachableEngine: Engine stand-in whose connections fail like a downed HTTP sink.

Fixtures:
    sqlite_engine: SQLAlchemy engine on a private in-memory SQLite database.
    unreachable_engine: UnreachableEngine for the ClickHouse dialect.
    make_payload: Factory for FRED ``series/observations`` payloads.
    make_session: Factory for DummySession objects.
"""
import json
import logging
from types import SimpleNamespace
from typing import Any, List, Optional

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool


class _NullHandler(logging.Handler):
    """Configure logging so tests don't try writing to pytest's closed streams."""

    def emit(self, record):  # pragma: no cover
        pass


root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)
root_logger.handlers = [_NullHandler()]


class DummyResponse:
    """Just enough of ``requests.Response`` for FredClient."""

    def __init__(self, payload: Any = None, *, status_code: int = 200, reason: str = "OK", text: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._text = text
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


class DummySession:
    """Records every request and answers with a canned response (or raises)."""

    def __init__(self, response: Optional[DummyResponse] = None, exc: Optional[Exception] = None):
        self.headers: dict = {}
        self.mounted: dict = {}
        self.calls: List[tuple] = []
        self._response = response
        self._exc = exc

    def mount(self, prefix, adapter):
        self.mounted[prefix] = adapter

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self._exc is not None:
            raise self._exc
        return self._response

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


@pytest.fixture
def make_session():
    def factory(payload: Any = None, **kwargs) -> DummySession:
        exc = kwargs.pop("exc", None)
        if exc is not None:
            return DummySession(exc=exc)
        return DummySession(response=DummyResponse(payload, **kwargs))

    return factory


@pytest.fixture
def make_payload():
    def factory(*observations: tuple) -> dict:
        return {
            "realtime_start": "2024-01-01",
            "realtime_end": "2024-01-01",
            "observation_start": "1600-01-01",
            "observation_end": "9999-12-31",
            "units": "lin",
            "order_by": "observation_date",
            "sort_order": "asc",
            "count": len(observations),
            "observations": [
                {
                    "realtime_start": "2024-01-01",
                    "realtime_end": "2024-01-01",
                    "date": obs_date,
                    "value": value,
                }
                for obs_date, value in observations
            ],
        }

    return factory


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    yield engine
    engine.dispose()


class UnreachableEngine:
    """Fails every connection with the transport error the clickhouse+http driver raises."""

    def __init__(self, dialect_name: str = "clickhouse"):
        self.dialect = SimpleNamespace(name=dialect_name)
        self.attempts = 0

    def _refuse(self):
        self.attempts += 1
        raise requests.ConnectionError("HTTPConnectionPool(host='127.0.0.1', port=1): connection refused")

    def begin(self):
        self._refuse()

    def connect(self):
        self._refuse()


@pytest.fixture
def unreachable_engine():
    return UnreachableEngine()
