"""
Process-wide logging for the crop risk service.

Entrypoints call `setup_logging(level=..., job_name=...)` once; modules get
their logger from `get_tagged_logger(__name__, tag=...)` and pass structured
fields through `extra=`:

    logger = get_tagged_logger(__name__, tag="rules")
    logger.info("Evaluated rule", extra={"rule": "drought"})

The line printed for that call ends in ``| rule=drought``. Every record also
carries `job_name` and `tag`, so output from the engine, the Open-Meteo
client and the HTTP layer can be told apart in one stream.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, MutableMapping, Optional, Tuple

# Records logged before setup_logging() runs still get a timestamp and level.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has; anything else on a record came from `extra`.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "tag",
    "job_name",
}

_configured = False


class MaxLevelFilter(logging.Filter):
    """Drop records above `max_level`; used to keep WARNING+ off stdout."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class RecordContextFilter(logging.Filter):
    """
    Fill in `job_name` and `tag` on records that lack them.

    Third-party loggers (uvicorn, requests, urllib3) are tagged with the last
    segment of their logger name.
    """

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self.job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self.job_name
        if not hasattr(record, "tag"):
            record.tag = record.name.rsplit(".", 1)[-1] if record.name else "-"
        return True


class ContextFormatter(logging.Formatter):
    """Append the record's structured `extra` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = structured_fields(record)
        if not fields:
            return line
        return line + " | " + " ".join(f"{key}={value}" for key, value in fields)


class TaggedLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that adds its tag to each call's `extra` instead of replacing it."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def structured_fields(record: logging.LogRecord) -> Tuple[Tuple[str, Any], ...]:
    """The `extra` fields attached to a record, in the order they were given."""
    return tuple((key, value) for key, value in record.__dict__.items() if key not in _RECORD_ATTRS)


def build_logging_config(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    log_format: str = LOG_FORMAT,
) -> Mapping[str, Any]:
    """dictConfig mapping that sends DEBUG/INFO to stdout and WARNING+ to stderr."""

    def stream_handler(stream: str, handler_level: str, *filters: str) -> dict:
        return {
            "class": "logging.StreamHandler",
            "formatter": "context",
            "filters": ["context", *filters],
            "level": handler_level,
            "stream": f"ext://sys.{stream}",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {"()": RecordContextFilter, "job_name": job_name},
            "info_and_below": {"()": MaxLevelFilter, "max_level": logging.INFO},
        },
        "formatters": {
            "context": {"()": ContextFormatter, "format": log_format, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "stdout": stream_handler("stdout", "DEBUG", "info_and_below"),
            "stderr": stream_handler("stderr", "WARNING"),
        },
        "root": {"level": level, "handlers": ["stdout", "stderr"]},
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    log_format: str = LOG_FORMAT,
    override_existing: bool = False,
) -> None:
    """Configure root logging once; later calls only apply with `override_existing`."""
    global _configured

    if _configured and not override_existing:
        return
    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name, log_format=log_format))
    _configured = True


def get_tagged_logger(name: str, *, tag: Optional[str] = None) -> TaggedLoggerAdapter:
    """Logger for `name` whose records carry `tag` (default: last dotted segment)."""
    return TaggedLoggerAdapter(logging.getLogger(name), {"tag": tag or name.rsplit(".", 1)[-1]})
