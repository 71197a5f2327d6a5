"""
Contextual logging utilities for MONGO_REPO.

Records emitted through get_logger() pick up two pieces of ambient state:

- a correlation ID, set by whoever owns the unit of work (a request handler,
  a job runner)
- the repository context of the store call in progress: ``db_name``,
  ``collection_name`` and ``transactional``. MongoRepository scopes it to
  each call with ``repository_context()``.
"""

import contextvars
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

_repository_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "repository_context", default={}
)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Tag subsequent records in this context with a correlation ID.

    A fresh UUID is generated when none is given. Returns the ID in use.
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def repository_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """
    Add repository fields to every record logged inside the block.

    Fields layer over any enclosing repository context and are removed on
    exit, including when the block raises.

    Usage:
        with repository_context(collection_name="items", transactional=False):
            contextual_logger.debug("find_all")
    """
    merged = {**_repository_context.get(), **fields}
    token = _repository_context.set(merged)
    try:
        yield merged
    finally:
        _repository_context.reset(token)


def get_repository_context() -> dict[str, Any]:
    return dict(_repository_context.get())


def get_logging_context() -> dict[str, Any]:
    """Timestamp, correlation ID (if set) and the current repository context."""
    context: dict[str, Any] = {"timestamp": datetime.now().isoformat()}

    correlation_id = _correlation_id.get()
    if correlation_id:
        context["correlation_id"] = correlation_id

    context.update(_repository_context.get())
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that merges the logging context into each record's extra.

    Explicit ``extra`` keys win over ambient ones.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**get_logging_context(), **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Write one structured record summarizing a completed operation.

    Args:
        logger: Logger instance
        operation: Operation name (e.g. "items.create_item")
        level: Log level
        success: Whether the operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional fields for the record
    """
    extra = {**get_logging_context(), "operation": operation, "success": success, **context}

    message = f"Operation: {operation}" if success else f"Operation failed: {operation}"
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=extra)
