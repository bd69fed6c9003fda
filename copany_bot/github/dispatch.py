"""Routes a decoded webhook event to its handler.

Dispatch never raises. Whatever a handler reports, or raises by mistake,
is logged and returned as a `HandlerResult`; the HTTP layer acknowledges
the delivery regardless.
"""

import logging
from typing import Optional

from copany_bot.github.events import EventType, WebhookEvent
from copany_bot.github.handlers import (
    Handler,
    HandlerResult,
    HandlerStatus,
    handle_installation,
    handle_installation_repositories,
    handle_issues,
    handle_pull_request,
    handle_push,
)
from copany_bot.installations.store import InstallationStore

logger = logging.getLogger(__name__)

HANDLERS: dict[EventType, Handler] = {
    EventType.PUSH: handle_push,
    EventType.PULL_REQUEST: handle_pull_request,
    EventType.ISSUES: handle_issues,
    EventType.INSTALLATION: handle_installation,
    EventType.INSTALLATION_REPOSITORIES: handle_installation_repositories,
}


class WebhookDispatcher:
    def __init__(
        self,
        store: InstallationStore,
        handlers: Optional[dict[EventType, Handler]] = None,
    ):
        self._store = store
        self._handlers = HANDLERS if handlers is None else handlers

    async def dispatch(self, event: WebhookEvent) -> HandlerResult:
        handler = self._handlers.get(event.event_type)
        if handler is None:
            logger.info("[%s event] received, no handler", event.event_name)
            return HandlerResult.skipped(f"unrecognized event {event.event_name!r}")

        try:
            result = await handler(event, self._store)
        except Exception:
            logger.exception(
                "Handler for %s.%s raised", event.event_name, event.action or "-"
            )
            return HandlerResult.failed("handler raised an unexpected error")

        self._log_result(event, result)
        return result

    @staticmethod
    def _log_result(event: WebhookEvent, result: HandlerResult) -> None:
        label = f"{event.event_name}.{event.action or '-'}"
        delivery = event.delivery_id or "-"
        if result.is_failure:
            logger.error("%s failed (delivery %s): %s", label, delivery, result.reason)
        elif result.status is HandlerStatus.SKIPPED:
            logger.info("%s skipped (delivery %s): %s", label, delivery, result.reason)
        else:
            logger.info("%s processed (delivery %s)", label, delivery)
