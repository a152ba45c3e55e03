"""requests.Session helpers: shared headers and a default timeout, no retries."""
from __future__ import annotations

from typing import Callable, Mapping, ParamSpec, TypeVar

import requests
from requests.adapters import HTTPAdapter

P = ParamSpec("P")
R = TypeVar("R")


def configure_session(
    session: requests.Session,
    *,
    headers: Mapping[str, str] | None,
    timeout_seconds: float,
) -> requests.Session:
    """Apply headers and a default timeout to a requests session.

    Mounted adapters never retry: a fetch is exactly one outbound request.
    """
    if headers:
        session.headers.update(headers)

    adapter = HTTPAdapter(max_retries=0)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.request = _with_timeout(session.request, timeout_seconds)  # type: ignore[assignment]
    return session


def _with_timeout(fn: Callable[P, R], default_timeout: float) -> Callable[P, R]:
    """Wrap requests methods to default the timeout."""
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        kwargs.setdefault("timeout", default_timeout)
        return fn(*args, **kwargs)

    return wrapper
