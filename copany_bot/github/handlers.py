"""Per-event-type webhook handlers.

Each handler receives the decoded `WebhookEvent` and the installation
store, and reports what happened as a `HandlerResult`. Handlers never
raise for persistence problems: they are caught here and reported as a
failed result so the delivery is still acknowledged.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from copany_bot.github.events import WebhookEvent
from copany_bot.github.schemas import (
    InstallationPayload,
    InstallationRepositoriesPayload,
    IssuesPayload,
    PullRequestPayload,
    PushPayload,
)
from copany_bot.installations.gateway import PersistenceError
from copany_bot.installations.models import Installation, TargetType
from copany_bot.installations.store import InstallationStore

logger = logging.getLogger(__name__)


class HandlerStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class HandlerResult:
    status: HandlerStatus
    reason: str = ""

    @classmethod
    def ok(cls, reason: str = "") -> "HandlerResult":
        return cls(HandlerStatus.OK, reason)

    @classmethod
    def skipped(cls, reason: str) -> "HandlerResult":
        return cls(HandlerStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, reason: str) -> "HandlerResult":
        return cls(HandlerStatus.FAILED, reason)

    @property
    def is_failure(self) -> bool:
        return self.status is HandlerStatus.FAILED


Handler = Callable[[WebhookEvent, InstallationStore], Awaitable[HandlerResult]]


# ---------------------------------------------------------------------------
# Informational events
# ---------------------------------------------------------------------------


async def handle_push(event: WebhookEvent, store: InstallationStore) -> HandlerResult:
    payload: PushPayload = event.payload
    logger.info("Push to %s with %d commits", payload.ref, len(payload.commits))
    return HandlerResult.ok()


async def handle_pull_request(event: WebhookEvent, store: InstallationStore) -> HandlerResult:
    payload: PullRequestPayload = event.payload
    title = payload.pull_request.title if payload.pull_request else None
    logger.info("Pull request %s #%s: %s", payload.action, payload.number, title)
    return HandlerResult.ok()


async def handle_issues(event: WebhookEvent, store: InstallationStore) -> HandlerResult:
    payload: IssuesPayload = event.payload
    number = payload.issue.number if payload.issue else None
    title = payload.issue.title if payload.issue else None
    logger.info("Issue %s #%s: %s", payload.action, number, title)
    return HandlerResult.ok()


# ---------------------------------------------------------------------------
# installation
# ---------------------------------------------------------------------------


def installation_from_payload(payload: InstallationPayload) -> Installation:
    """Build the row for a freshly created installation."""
    account = payload.installation.account
    return Installation(
        installation_id=str(payload.installation.id),
        github_user_id=str(payload.sender.id) if payload.sender and payload.sender.id else None,
        target_type=TargetType.from_github(payload.installation.target_type),
        target_login=account.login if account else None,
        repository_ids=[str(repo.id) for repo in payload.repositories],
    )


async def handle_installation(event: WebhookEvent, store: InstallationStore) -> HandlerResult:
    payload: InstallationPayload = event.payload
    installation_id = str(payload.installation.id)
    logger.info(
        "Installation %s %s (%s)",
        installation_id,
        payload.action,
        payload.installation.target_type,
    )

    if payload.action == "created":
        try:
            await store.create_installation(installation_from_payload(payload))
        except PersistenceError as exc:
            return HandlerResult.failed(f"could not save installation: {exc}")
        return HandlerResult.ok()

    if payload.action == "deleted":
        try:
            deleted = await store.delete_installation(installation_id)
        except PersistenceError as exc:
            return HandlerResult.failed(f"could not delete installation: {exc}")
        if deleted is None:
            return HandlerResult.skipped(f"installation {installation_id} not found")
        return HandlerResult.ok()

    return HandlerResult.skipped(f"action {payload.action!r} not handled")


# ---------------------------------------------------------------------------
# installation_repositories
# ---------------------------------------------------------------------------


async def handle_installation_repositories(
    event: WebhookEvent, store: InstallationStore
) -> HandlerResult:
    payload: InstallationRepositoriesPayload = event.payload
    installation_id = str(payload.installation.id)

    if payload.action == "added" and payload.repositories_added:
        repository_ids = [str(repo.id) for repo in payload.repositories_added]
        operation = store.add_repositories
    elif payload.action == "removed" and payload.repositories_removed:
        repository_ids = [str(repo.id) for repo in payload.repositories_removed]
        operation = store.remove_repositories
    else:
        return HandlerResult.skipped("no repositories changed")

    logger.info(
        "Installation %s: %s repositories %s",
        installation_id,
        payload.action,
        repository_ids,
    )
    try:
        updated = await operation(installation_id, repository_ids)
    except PersistenceError as exc:
        return HandlerResult.failed(f"could not update repositories: {exc}")
    if updated is None:
        return HandlerResult.failed(f"installation {installation_id} not found")
    return HandlerResult.ok()
