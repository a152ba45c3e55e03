"""Client for the FRED ``series/observations`` endpoint."""
from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from fred_loader.clients.http_session import configure_session
from fred_loader.errors import ConfigError, FetchError, LoadCancelledError, NoDataError
from fred_loader.models import SeriesResponse
from fred_loader.utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="fred_client")

FRED_OBSERVATIONS_URL = "https://api.stlouisfed.org/fred/series/observations"
DEFAULT_USER_AGENT = "fred-loader/fred_client"
DEFAULT_TIMEOUT = 30  # seconds


@dataclass
class FredClientConfig:
    """
    Configuration container for FredClient.

    Attributes
    ----------
    base_url:
        Full URL of the observations endpoint. Injected so tests can point
        the client at a double.
    api_key:
        Default FRED API key, used when ``fetch_series`` is not given one.
    timeout_seconds:
        Timeout applied to the single outbound request.
    user_agent:
        User-Agent header sent on every request.
    """

    base_url: str = FRED_OBSERVATIONS_URL
    api_key: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


def _error_message(resp: requests.Response) -> str:
    """Pull FRED's ``error_message`` out of an error body, falling back to the status line."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error_message"):
        return f"{resp.status_code} {body['error_message']}"
    return f"{resp.status_code} {resp.reason}"


class FredClient:
    """Fetch one series from FRED with a single synchronous request."""

    def __init__(
        self,
        config: FredClientConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._session = configure_session(
            session or requests.Session(),
            headers={"User-Agent": self._config.user_agent},
            timeout_seconds=self._config.timeout_seconds,
        )

    def build_params(self, series_id: str, api_key: str) -> Dict[str, Any]:
        """Query parameters for the observations request."""
        return {
            "series_id": series_id,
            "api_key": api_key,
            "file_type": "json",
        }

    def fetch_series(
        self,
        series_id: str,
        api_key: Optional[str] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> SeriesResponse:
        """
        Pull every observation for ``series_id``.

        Raises FetchError on transport, status or decoding failures and
        NoDataError when the response carries no observations.
        """
        api_key = api_key or self._config.api_key
        if not series_id:
            raise ConfigError("a series id is required")
        if not api_key:
            raise ConfigError("a FRED API key is required (--api or FRED_API_KEY)")
        if cancel_event is not None and cancel_event.is_set():
            raise LoadCancelledError(f"fetch of series {series_id} cancelled")

        # the query string carries the api key, so only the series id is logged
        logger.info(f"Fetching series '{series_id}' from {self._config.base_url}")
        try:
            resp = self._session.get(
                self._config.base_url,
                params=self.build_params(series_id, api_key),
            )
        except requests.exceptions.RequestException as exc:
            logger.error(f"Request for series '{series_id}' failed: {type(exc).__name__}")
            raise FetchError(f"request for series {series_id} failed: {type(exc).__name__}") from exc

        with resp:
            if not resp.ok:
                message = _error_message(resp)
                logger.error(f"FRED returned an error for series '{series_id}': {message}")
                raise FetchError(f"FRED request for series {series_id} failed: {message}")
            try:
                payload = resp.json()
            except ValueError as exc:
                logger.error(f"Undecodable body for series '{series_id}'")
                raise FetchError(f"response for series {series_id} is not valid JSON") from exc

        return self.parse_response(series_id, payload)

    @staticmethod
    def parse_response(series_id: str, payload: Any) -> SeriesResponse:
        """Decode a JSON payload into a SeriesResponse, rejecting empty series."""
        if not isinstance(payload, dict):
            raise FetchError(f"unexpected payload for series {series_id}: {type(payload).__name__}")
        try:
            parsed = SeriesResponse.model_validate(payload)
        except ValidationError as exc:
            logger.error(f"Payload for series '{series_id}' failed validation: {exc.error_count()} error(s)")
            raise FetchError(f"unexpected payload shape for series {series_id}") from exc

        if not parsed.observations:
            logger.error(f"No observations returned for series '{series_id}'")
            raise NoDataError(series_id)

        logger.info(
            f"Fetched {len(parsed.observations)} observations for '{series_id}' "
            f"({parsed.observation_start} to {parsed.observation_end}, units={parsed.units!r})"
        )
        return parsed


def make_fred_client_from_env(session: Optional[requests.Session] = None) -> FredClient:
    """Convenient factory to construct a FredClient using environment variables."""
    config = FredClientConfig(
        base_url=os.getenv("FRED_BASE_URL", FRED_OBSERVATIONS_URL),
        api_key=os.getenv("FRED_API_KEY", ""),
        timeout_seconds=float(os.getenv("FRED_TIMEOUT_SEC", DEFAULT_TIMEOUT)),
        user_agent=os.getenv("FRED_USER_AGENT", DEFAULT_USER_AGENT),
    )
    return FredClient(config=config, session=session)


def main() -> None:
    """Manual test helper to print the first observations of a series."""
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    series_id = os.environ.get("FRED_SERIES", "UNRATE")
    client = make_fred_client_from_env()
    response = client.fetch_series(series_id)
    for obs in response.observations[:5]:
        logger.info(f"{obs.date} {obs.value}")


if __name__ == "__main__":
    main()
