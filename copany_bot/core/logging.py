"""Structured logging via structlog.

Configures structlog once at application startup. Modules keep using
`logging.getLogger(__name__)`; the stdlib bridge routes those records to
stdout alongside structlog output.

Renderer selection:
  debug=True : `ConsoleRenderer` with colours for local development.
  debug=False: `JSONRenderer` for machine-parseable logs in production.

The `request_id` and `delivery_id` fields are injected into every structlog
event from the ContextVars set by `RequestIdMiddleware`.
"""

from __future__ import annotations

import logging
import sys

import structlog

from copany_bot.core.middleware import get_delivery_id, get_request_id


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject request_id and delivery_id from ContextVars."""
    request_id = get_request_id()
    delivery_id = get_delivery_id()
    if request_id:
        event_dict["request_id"] = request_id
    if delivery_id:
        event_dict["delivery_id"] = delivery_id
    return event_dict


class _ContextFilter(logging.Filter):
    """Copy the request/delivery ids onto stdlib log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.delivery_id = get_delivery_id() or "-"
        return True


def configure_structlog(debug: bool = True) -> None:
    """Configure structlog for the application lifetime.

    Call once from `create_app()`. Calling multiple times is safe.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, _ContextFilter) for f in handler.filters):
            handler.addFilter(_ContextFilter())
