"""ASGI middleware for the webhook service.

RequestIdMiddleware binds two ContextVars for the lifetime of a request:
  - `_request_id_var`: X-Request-ID if supplied, else the GitHub delivery
    id, else a fresh UUID4
  - `_delivery_id_var`: X-GitHub-Delivery, empty for non-GitHub callers

The logging layer reads both so every log line emitted while handling a
delivery can be correlated with GitHub's "Recent Deliveries" view.
"""

import uuid
from contextvars import ContextVar
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_delivery_id_var: ContextVar[str] = ContextVar("delivery_id", default="")


def get_request_id() -> str:
    """Return the current request's ID, or an empty string outside a request."""
    return _request_id_var.get()


def get_delivery_id() -> str:
    """Return the current GitHub delivery ID, or an empty string."""
    return _delivery_id_var.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Read or generate X-Request-ID and make it available for the request lifetime.

    The ID is always echoed back in the response header.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        delivery_id = request.headers.get("X-GitHub-Delivery", "")
        request_id = (
            request.headers.get("X-Request-ID") or delivery_id or str(uuid.uuid4())
        )

        request_token = _request_id_var.set(request_id)
        delivery_token = _delivery_id_var.set(delivery_id)
        try:
            response = await call_next(request)
        finally:
            _delivery_id_var.reset(delivery_token)
            _request_id_var.reset(request_token)

        response.headers["X-Request-ID"] = request_id
        return response
