"""
Contextual logging for authorization calls.

Two pieces of context ride along with every record emitted through
``get_logger``:

- the request correlation id, bound once per HTTP request by the FastAPI
  dependencies (``X-Request-ID`` or a generated uuid4)
- the authorization context of the check in flight (backend, subject)

Both live in contextvars, so concurrent checks for different identities
never see each other's values.
"""

import contextvars
import logging
import uuid
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "authz_correlation_id", default=None
)
_authz_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "authz_context", default=None
)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Bind the correlation id for the current request.

    A blank or missing id is replaced by a fresh uuid4.

    Returns:
        The id now bound
    """
    correlation_id = (correlation_id or "").strip() or str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    _correlation_id.set(None)


def set_authz_context(backend: str | None = None, **fields: Any) -> None:
    """Describe the authorization call in flight (backend, subject, scope...)."""
    _authz_context.set({"backend": backend, **fields})


def clear_authz_context() -> None:
    _authz_context.set(None)


def get_logging_context() -> dict[str, Any]:
    """Correlation id plus authorization context, as record attributes."""
    context: dict[str, Any] = {}
    correlation_id = _correlation_id.get()
    if correlation_id:
        context["correlation_id"] = correlation_id
    context.update(_authz_context.get() or {})
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Stamps the current logging context on every record; explicit extras win."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**get_logging_context(), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """Module logger for authorization code (use with ``__name__``)."""
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **fields: Any,
) -> None:
    """
    Emit one structured record summarising an operation.

    Args:
        logger: Plain logger or ContextualLoggerAdapter
        operation: Operation name (``authz.check``, ``authz.update_role``)
        level: Log level
        success: Whether the operation completed without error
        duration_ms: Elapsed time, rounded to two decimals on the record
        **fields: Operation details (resource, action, allowed...)
    """
    extra = {**get_logging_context(), "operation": operation, "success": success, **fields}
    message = f"{operation} {'succeeded' if success else 'failed'}"
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
        message += f" in {duration_ms:.2f}ms"
    logger.log(level, message, extra=extra)
