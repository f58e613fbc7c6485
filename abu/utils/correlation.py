"""Lightweight correlation ID utilities for structured logging.

Provides a per-invocation run identifier via a ContextVar so that batch logs
emitted by worker coroutines carry the same ``run_id``. asyncio tasks copy the
current context on creation, so setting the id once before the event loop
starts is enough.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar

_run_id_var: ContextVar[str] = ContextVar("run_id", default="")


def set_run_id(run_id: str) -> None:
    """Set the current run correlation id in a context variable."""

    _run_id_var.set(run_id)


def new_run_id() -> str:
    """Generate, set and return a fresh short run id."""

    run_id = uuid.uuid4().hex[:12]
    set_run_id(run_id)
    return run_id


def get_run_id() -> str:
    """Return the current run correlation id, or empty string."""

    return _run_id_var.get()
