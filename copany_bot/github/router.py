"""GitHub webhook endpoint.

The endpoint is public but every delivery must carry a valid
X-Hub-Signature-256 header computed over the raw body. The body is read
as bytes and only decoded after verification, so no JSON middleware may
touch it first.

Outcomes:
  500: webhook secret or Supabase credentials not configured (ConfigurationError)
  403: signature missing or mismatched
  400: body is not a JSON object
  200: everything else, including handler failures (logged, not surfaced)
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import ValidationError

from copany_bot.core.config import ConfigurationError, Settings, get_settings
from copany_bot.github.dispatch import WebhookDispatcher
from copany_bot.github.events import parse_event
from copany_bot.github.handlers import HandlerStatus
from copany_bot.github.schemas import WebhookResponse
from copany_bot.github.signature import MISSING, signature_failure_reason
from copany_bot.installations.dependencies import get_installation_store
from copany_bot.installations.store import InstallationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/github", tags=["github"])


@router.post("/webhook", response_model=WebhookResponse)
async def handle_webhook(
    request: Request,
    x_hub_signature_256: Optional[str] = Header(default=None),
    x_github_event: Optional[str] = Header(default=None),
    x_github_delivery: str = Header(default=""),
    settings: Settings = Depends(get_settings),
    store: Optional[InstallationStore] = Depends(get_installation_store),
) -> WebhookResponse:
    """Verify, decode and dispatch one GitHub App webhook delivery."""
    if not settings.github_webhook_secret:
        raise ConfigurationError("GITHUB_WEBHOOK_SECRET is not set")
    if store is None:
        raise ConfigurationError(
            "Supabase is not configured (SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)"
        )

    body = await request.body()

    failure = signature_failure_reason(body, x_hub_signature_256, settings.github_webhook_secret)
    if failure is not None:
        if failure == MISSING:
            logger.warning("Verification failed: missing X-Hub-Signature-256 header")
        else:
            logger.warning("Verification failed: signature mismatch")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized request",
        )

    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as exc:
        # RecursionError: nesting deeper than the JSON scanner can follow
        logger.warning("Failed to parse request body: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request body format",
        )
    if not isinstance(data, dict):
        logger.warning("Request body is JSON but not an object: %s", type(data).__name__)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request body format",
        )

    event_name = x_github_event or ""
    try:
        event = parse_event(event_name, data, delivery_id=x_github_delivery)
    except ValidationError as exc:
        action = data.get("action")
        logger.error(
            "%s payload does not match its schema (%d errors): %s",
            event_name,
            exc.error_count(),
            exc.errors(include_url=False),
        )
        return WebhookResponse(
            received=True,
            event=event_name,
            action=action if isinstance(action, str) else "",
            status=HandlerStatus.FAILED.value,
        )

    result = await WebhookDispatcher(store).dispatch(event)
    return WebhookResponse(
        received=True,
        event=event.event_name,
        action=event.action,
        status=result.status.value,
    )
