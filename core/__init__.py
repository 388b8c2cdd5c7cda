"""Core shared utilities: logging context and run artifacts."""

from core.structured_logging import (
    configure_structured_logging,
    get_request,
    get_run_id,
    request_scope,
    set_run_id,
)
from core.run_artifacts import write_jsonl, write_run_report

__all__ = [
    "configure_structured_logging",
    "get_request",
    "get_run_id",
    "request_scope",
    "set_run_id",
    "write_jsonl",
    "write_run_report",
]
