"""Correlation id propagation for log lines of one dispatch."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:16]


def get_correlation_id() -> str:
    """Correlation id of the dispatch in progress, empty outside of one."""
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the block and restore the outer one on exit.

    The id is also bound into structlog's context so every log line emitted
    inside the block carries it. A fresh id is generated when none is given.
    """
    correlation_id = correlation_id or generate_correlation_id()
    token = _correlation_id.set(correlation_id)
    try:
        with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
            yield correlation_id
    finally:
        _correlation_id.reset(token)
