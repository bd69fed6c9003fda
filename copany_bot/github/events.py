"""Typed webhook event envelope.

The X-GitHub-Event header is mapped onto a closed `EventType` enum.
Names GitHub adds over time land on `EventType.UNRECOGNIZED`; the raw
name is kept on the envelope so it can still be logged and echoed back.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel

from copany_bot.github.schemas import (
    InstallationPayload,
    InstallationRepositoriesPayload,
    IssuesPayload,
    PullRequestPayload,
    PushPayload,
)


class EventType(str, Enum):
    PUSH = "push"
    PULL_REQUEST = "pull_request"
    ISSUES = "issues"
    INSTALLATION = "installation"
    INSTALLATION_REPOSITORIES = "installation_repositories"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_header(cls, name: Optional[str]) -> "EventType":
        if name and name != cls.UNRECOGNIZED.value:
            try:
                return cls(name)
            except ValueError:
                pass
        return cls.UNRECOGNIZED


PAYLOAD_SCHEMAS: dict[EventType, type[BaseModel]] = {
    EventType.PUSH: PushPayload,
    EventType.PULL_REQUEST: PullRequestPayload,
    EventType.ISSUES: IssuesPayload,
    EventType.INSTALLATION: InstallationPayload,
    EventType.INSTALLATION_REPOSITORIES: InstallationRepositoriesPayload,
}


@dataclass
class WebhookEvent:
    """One decoded delivery.

    `payload` is the typed schema for known event types and the raw JSON
    object for `EventType.UNRECOGNIZED`.
    """

    event_type: EventType
    event_name: str
    payload: Union[BaseModel, dict[str, Any]]
    delivery_id: str = ""

    @property
    def action(self) -> str:
        if isinstance(self.payload, BaseModel):
            return getattr(self.payload, "action", None) or ""
        action = self.payload.get("action")
        return action if isinstance(action, str) else ""


def parse_event(
    event_name: Optional[str],
    body: dict[str, Any],
    delivery_id: str = "",
) -> WebhookEvent:
    """Build a `WebhookEvent` from the event header and decoded JSON body.

    Raises:
        pydantic.ValidationError: If a known event type's payload does not
            match its schema.
    """
    event_type = EventType.from_header(event_name)
    schema = PAYLOAD_SCHEMAS.get(event_type)
    payload = schema.model_validate(body) if schema else body
    return WebhookEvent(
        event_type=event_type,
        event_name=event_name or "",
        payload=payload,
        delivery_id=delivery_id,
    )
