"""
Structured event logging for simulation runs.

Each event is one JSON object tagged with the run ID of the simulated day.
Inside an ``order_scope`` it also carries the planned order's context
(sequence, meal period and, once known, the platform order ID). Order context
lives in a context variable, so worker threads never see each other's orders.
"""
import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from typing import Any

_order_context: ContextVar[dict[str, Any] | None] = ContextVar(
    "pos_datagen_order_context", default=None
)


def new_run_id() -> str:
    """Run IDs look like ``SIM_1a2b3c4d5e6f``."""
    return f"SIM_{uuid.uuid4().hex[:12]}"


@contextmanager
def order_scope(**fields: Any) -> Iterator[dict[str, Any]]:
    """
    Attach ``fields`` to every event logged in this thread until exit.

    Yields the live context dict so callers can add the order ID once the
    platform has assigned one.
    """
    context = {**(_order_context.get() or {}), **fields}
    token = _order_context.set(context)
    try:
        yield context
    finally:
        _order_context.reset(token)


class RunEventLogger:
    """JSON event logger bound to one simulation run at a time."""

    def __init__(self, logger_name: str, **bound: Any):
        self.logger = logging.getLogger(logger_name)
        self.run_id: str | None = None
        self._bound = dict(bound)

    def bind(self, **fields: Any) -> "RunEventLogger":
        """Child logger sharing this run ID with extra fixed fields."""
        child = RunEventLogger(self.logger.name, **{**self._bound, **fields})
        child.run_id = self.run_id
        return child

    @contextmanager
    def run_scope(self, business_date: date, run_id: str | None = None) -> Iterator[str]:
        previous_run, previous_bound = self.run_id, dict(self._bound)
        self.run_id = run_id or new_run_id()
        self._bound["business_date"] = business_date.isoformat()
        try:
            yield self.run_id
        finally:
            self.run_id, self._bound = previous_run, previous_bound

    def build_entry(self, level: int, event: str, fields: dict[str, Any]) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": logging.getLevelName(level),
            "event": event,
            "run_id": self.run_id or "none",
        }
        entry.update(self._bound)
        entry.update(_order_context.get() or {})
        if fields:
            entry["fields"] = fields
        return entry

    def log(self, level: int, event: str, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(level, json.dumps(self.build_entry(level, event, fields), default=str))

    def info(self, event: str, **fields: Any) -> None:
        self.log(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log(logging.WARNING, event, **fields)

    def debug(self, event: str, **fields: Any) -> None:
        self.log(logging.DEBUG, event, **fields)


def get_event_logger(name: str, **bound: Any) -> RunEventLogger:
    return RunEventLogger(name, **bound)
