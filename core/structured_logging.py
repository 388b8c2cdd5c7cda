"""Structured logging helpers with run and request correlation context."""

from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator

_RUN_ID_VAR: contextvars.ContextVar[str] = contextvars.ContextVar(
    "run_id", default="-"
)
_REQUEST_VAR: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request", default="-"
)


class _RequestContextFilter(logging.Filter):
    """Inject run and extraction request fields into all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _RUN_ID_VAR.get("-")
        record.request = _REQUEST_VAR.get("-")
        return True


def _ensure_filter_on_root_handlers() -> None:
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        has_filter = any(isinstance(f, _RequestContextFilter) for f in handler.filters)
        if not has_filter:
            handler.addFilter(_RequestContextFilter())


def configure_structured_logging(level: int = logging.INFO) -> None:
    """Configure root logging format with run/request context."""
    fmt = (
        "%(asctime)s | %(levelname)s | run_id=%(run_id)s | request=%(request)s | "
        "%(name)s | %(message)s"
    )
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level, format=fmt)
    else:
        root_logger.setLevel(level)
        formatter = logging.Formatter(fmt)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)
    _ensure_filter_on_root_handlers()


def set_run_id(run_id: str | None = None) -> str:
    """Set or generate run correlation ID."""
    value = run_id or uuid.uuid4().hex[:12]
    _RUN_ID_VAR.set(value)
    return value


def get_run_id() -> str:
    """Get current run correlation ID."""
    return _RUN_ID_VAR.get("-")


def get_request() -> str:
    """Get the extraction request currently being served."""
    return _REQUEST_VAR.get("-")


@contextmanager
def request_scope(file_path: str | None, pattern: str | None) -> Iterator[None]:
    """Tag emitted logs with the ``file::pattern`` being extracted."""
    label = f"{file_path or '?'}::{pattern or ''}"
    token = _REQUEST_VAR.set(label)
    try:
        yield
    finally:
        _REQUEST_VAR.reset(token)
