"""Structured logging setup: structlog events rendered through stdlib handlers."""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Final

import structlog

_DEFAULT_LOGGER_NAME: Final[str] = "config_governance"
_LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")

_INSTALLED_LOCK = threading.Lock()
_INSTALLED_HANDLERS: list[logging.Handler] = []


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    logger_name: str = _DEFAULT_LOGGER_NAME,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Configure structlog and the package's stdlib logger; return the latter.

    Parameters
    ----------
    observability_config:
        Mapping compatible with ``[observability]`` settings in ``governance.toml``.
    logger_name:
        Root logger name for package events.
    stream:
        Console stream; defaults to ``sys.stderr`` so stdout stays free for reports.

    Calling this again replaces the handlers installed by the previous call.
    """

    cfg = dict(observability_config or {})
    level = _parse_log_level(cfg.get("log_level", "INFO"))
    log_format = cfg.get("log_format", "json")
    if log_format not in _LOG_FORMATS:
        raise ValueError(f"unsupported log_format {log_format!r}")
    raw_log_file = cfg.get("log_file") or ""
    if not isinstance(raw_log_file, (str, Path)):
        raise ValueError(f"log_file must be a path, got {type(raw_log_file).__name__}")

    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if raw_log_file:
        log_path = Path(raw_log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logger = logging.getLogger(logger_name)
    _replace_handlers(logger, handlers)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def shutdown_logging() -> None:
    """Detach and close handlers installed by :func:`setup_logging`."""

    with _INSTALLED_LOCK:
        for handler in _INSTALLED_HANDLERS:
            for logger in _loggers_with(handler):
                logger.removeHandler(handler)
            handler.close()
        _INSTALLED_HANDLERS.clear()


def get_correlation_context() -> dict[str, object]:
    """Return the fields currently bound for log events in this context."""
    return dict(structlog.contextvars.get_contextvars())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Temporarily bind correlation fields (``run_id``, ``migration_id`` ...) for events in scope."""
    bound = {
        _validate_correlation_key(key): _validate_correlation_value(value)
        for key, value in fields.items()
        if value is not None
    }
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def _replace_handlers(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    shutdown_logging()
    formatter = logging.Formatter("%(message)s")
    with _INSTALLED_LOCK:
        for handler in handlers:
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            _INSTALLED_HANDLERS.append(handler)


def _loggers_with(handler: logging.Handler) -> list[logging.Logger]:
    candidates = [logging.getLogger(name) for name in list(logging.root.manager.loggerDict)]
    return [logger for logger in candidates if handler in logger.handlers]


def _parse_log_level(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def _validate_correlation_key(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError("correlation key must not be empty")
    return normalized


def _validate_correlation_value(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"correlation value must be a string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        raise ValueError("correlation value must not be empty")
    return normalized


__all__ = [
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
    "shutdown_logging",
]
