"""Loguru setup for the resource guard.

Records are written as one orjson line each in production and as
colorized text in development. Fields bound through ``bind_context``
follow every record of the current task, and fields that can carry a
credential are replaced with ``[REDACTED]`` before any sink sees them.
Standard library loggers (httpx, redis) are routed through Loguru.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

import orjson
from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Mapping


_log_context: ContextVar[Mapping[str, Any]] = ContextVar(
    "resource_guard_log_context", default=MappingProxyType({})
)

REDACTED_FIELDS: Final[frozenset[str]] = frozenset(
    {"authorization", "token", "access_token", "dpop", "client_secret"}
)
REDACTED: Final[str] = "[REDACTED]"

_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "asyncio", "redis")

# Keys used internally by the formatters; never emitted as fields.
_INTERNAL_KEYS: Final[frozenset[str]] = frozenset({"name", "_json", "_fields"})

_DEV_FORMAT: Final[str] = (
    "<green>{time:HH:mm:ss.SSS}</green> "
    "<level>{level: <8}</level> "
    "<cyan>{extra[name]}</cyan> "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Send standard library records to Loguru at the caller's depth."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(name=record.name).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


def _patch(record: dict[str, Any]) -> None:
    """Attach task context to the record and redact credentials."""
    extra = record["extra"]
    extra.setdefault("name", record["name"])
    for key, value in _log_context.get().items():
        extra.setdefault(key, value)
    for key in REDACTED_FIELDS & extra.keys():
        extra[key] = REDACTED


def _fields(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record["extra"].items() if k not in _INTERNAL_KEYS}


def _json_format(record: dict[str, Any]) -> str:
    entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["extra"]["name"],
        "message": record["message"],
        "location": f"{record['module']}.{record['function']}:{record['line']}",
        **_fields(record),
    }
    if record["exception"] is not None:
        exc_type, exc_value, _ = record["exception"]
        entry["error"] = {
            "type": exc_type.__name__ if exc_type else None,
            "detail": str(exc_value) if exc_value else None,
        }
    # Loguru formats the returned string again, so the JSON goes through extra.
    record["extra"]["_json"] = orjson.dumps(entry, default=str).decode()
    return "{extra[_json]}\n"


def _text_format(record: dict[str, Any]) -> str:
    fields = " ".join(f"{k}={v}" for k, v in _fields(record).items())
    fmt = _DEV_FORMAT
    if fields:
        # Values stay out of the template so that "<" is never read as markup.
        record["extra"]["_fields"] = fields
        fmt += " <dim>{extra[_fields]}</dim>"
    fmt += "\n"
    if record["exception"] is not None:
        fmt += "{exception}\n"
    return fmt


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    is_development: bool = False,
    log_file: Path | str | None = None,
) -> None:
    """Replace all Loguru sinks with the configured ones.

    Args:
        log_level: Minimum level name, e.g. ``DEBUG`` or ``WARNING``.
        log_format: ``json`` or ``text``. Development always uses text.
        is_development: Whether to favour readable, colorized output.
        log_file: Also write JSON lines to this file, rotated at 100 MB.
    """
    level = log_level.upper()
    as_json = log_format == "json" and not is_development

    logger.remove()
    logger.configure(patcher=_patch)
    logger.add(
        sys.stdout,
        level=level,
        format=_json_format if as_json else _text_format,
        colorize=not as_json,
        diagnose=not as_json,
    )

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            level=level,
            format=_json_format,
            rotation="100 MB",
            retention="7 days",
            compression="gz",
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Return the Loguru logger bound to ``name`` (usually ``__name__``)."""
    return logger.bind(name=name)


def bind_context(**fields: Any) -> None:
    """Add fields to every later record of the current task.

    Example:
        bind_context(request_id="abc-123", scheme="DPoP")
    """
    _log_context.set(MappingProxyType({**_log_context.get(), **fields}))


def unbind_context(*keys: str) -> None:
    """Drop the given fields from the task context."""
    current = _log_context.get()
    _log_context.set(
        MappingProxyType({k: v for k, v in current.items() if k not in keys})
    )


def clear_context() -> None:
    """Drop all task context fields."""
    _log_context.set(MappingProxyType({}))


def get_context() -> dict[str, Any]:
    """Return a copy of the task context."""
    return dict(_log_context.get())


__all__ = [
    "REDACTED",
    "REDACTED_FIELDS",
    "InterceptHandler",
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "logger",
    "setup_logging",
    "unbind_context",
]
