"""Logging helpers: a dictConfig builder and tag-aware logger adapters."""
from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict, MutableMapping, Tuple

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_configured = False


class TaggedLoggerAdapter(logging.LoggerAdapter):
    """Prefix every message with ``[tag]`` and expose the tag as a record attribute."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        tag = self.extra.get("tag") if self.extra else None
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("tag", tag)
        kwargs["extra"] = extra
        if tag:
            return f"[{tag}] {msg}", kwargs
        return msg, kwargs


def build_logging_config(level: str = "INFO", job_name: str = "fred_loader") -> Dict[str, Any]:
    """Return a dictConfig payload that logs to stdout at ``level``."""
    level = (level or "INFO").upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": f"{DEFAULT_FORMAT} job={job_name}",
                "datefmt": DEFAULT_DATE_FORMAT,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "stream": "ext://sys.stdout",
                "level": level,
            },
        },
        "loggers": {
            # urllib3 DEBUG lines include the query string, api_key included
            "urllib3": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["stdout"]},
    }


def setup_logging(level: str = "INFO", job_name: str = "fred_loader", *, force: bool = False) -> None:
    """Configure process-wide logging once; later calls are no-ops unless ``force`` is set."""
    global _configured
    if _configured and not force:
        return
    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name))
    _configured = True


def get_tagged_logger(name: str, tag: str) -> TaggedLoggerAdapter:
    """Return a logger adapter that tags every record with ``tag``."""
    return TaggedLoggerAdapter(logging.getLogger(name), {"tag": tag})
