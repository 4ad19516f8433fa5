import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

SECRET_KEYS = frozenset({"api_key", "authorization", "ade_api_key"})


def _redact_secrets(_, __, event_dict):
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _redact_secrets,
    ]


def _renderer(json_logs: bool):
    if json_logs:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Route structlog through stdlib logging on stderr; stdout carries CLI output."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(message)s")

    structlog.configure(
        processors=[*_shared_processors(), structlog.processors.StackInfoRenderer(), *_renderer(json_logs)],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


@contextmanager
def log_context(**values) -> Iterator[None]:
    """Attach ``values`` to every event logged in this block, on the current thread."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str):
    return structlog.get_logger(name)
