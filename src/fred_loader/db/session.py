"""Engine factories for the destination analytical database."""
from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Optional

from requests import RequestException
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from fred_loader.errors import ConfigError

# The clickhouse+http driver lets transport errors from requests through unwrapped.
SINK_ERRORS = (SQLAlchemyError, RequestException)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8123
DEFAULT_USER = "default"
DEFAULT_DATABASE = "default"
DEFAULT_DRIVERNAME = "clickhouse+http"


def build_dsn(
    host: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    port: Optional[int] = None,
    database: Optional[str] = None,
) -> str:
    """Build a ClickHouse DSN from arguments, falling back to environment variables.

    ``FRED_LOADER_DSN`` wins over every piece when it is set and no argument
    was given.
    """
    override = os.getenv("FRED_LOADER_DSN")
    if override and not any(v is not None for v in (host, user, password, port, database)):
        return override

    url = URL.create(
        DEFAULT_DRIVERNAME,
        username=user if user is not None else os.getenv("CLICKHOUSE_USER", DEFAULT_USER),
        password=password if password is not None else os.getenv("CLICKHOUSE_PASSWORD", ""),
        host=host or os.getenv("CLICKHOUSE_HOST", DEFAULT_HOST),
        port=int(port or os.getenv("CLICKHOUSE_PORT", DEFAULT_PORT)),
        database=database or os.getenv("CLICKHOUSE_DB", DEFAULT_DATABASE),
    )
    return url.render_as_string(hide_password=False)


def redact_dsn(dsn: str) -> str:
    """Render a DSN with its password masked, for logging."""
    return parse_dsn(dsn).render_as_string(hide_password=True)


def parse_dsn(dsn: str) -> URL:
    """Parse ``dsn`` into a URL, raising ConfigError when it is malformed."""
    try:
        return make_url(dsn)
    except ArgumentError as exc:
        raise ConfigError(f"invalid sink DSN: {exc}") from exc


def create_sink_engine(dsn: str, **kwargs) -> Engine:
    """Create a SQLAlchemy engine for the sink; ConfigError for a bad DSN or unknown dialect."""
    url = parse_dsn(dsn)
    kwargs.setdefault("pool_pre_ping", True)
    try:
        return create_engine(url, future=True, **kwargs)
    except (ArgumentError, ImportError) as exc:
        raise ConfigError(f"cannot create engine for {url.render_as_string(hide_password=True)}: {exc}") from exc


@contextmanager
def sink_engine(dsn: Optional[str] = None, engine: Optional[Engine] = None) -> Iterator[Engine]:
    """Yield a sink engine and dispose of it on exit.

    A caller-supplied ``engine`` is yielded as-is and left open; its owner
    disposes of it.
    """
    if engine is not None:
        yield engine
        return

    owned = create_sink_engine(dsn or build_dsn())
    try:
        yield owned
    finally:
        owned.dispose()
