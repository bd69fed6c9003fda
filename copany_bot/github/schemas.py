"""Pydantic schemas for GitHub webhook payloads and responses.

Only the fields this service reads are declared; everything else GitHub
sends is ignored. Fields GitHub always includes for an event type are
required, fields it omits for some actions are optional.
"""

from typing import Optional

from pydantic import BaseModel, field_validator


class WebhookResponse(BaseModel):
    """Acknowledgement response for webhook events."""

    received: bool
    event: str
    action: str
    status: str


class Account(BaseModel):
    id: Optional[int] = None
    login: Optional[str] = None


class Sender(BaseModel):
    id: Optional[int] = None
    login: Optional[str] = None


class RepositoryRef(BaseModel):
    id: int
    name: Optional[str] = None
    full_name: Optional[str] = None


class InstallationInfo(BaseModel):
    id: int
    target_type: Optional[str] = None
    account: Optional[Account] = None


class InstallationPayload(BaseModel):
    """`installation` event: created, deleted, suspend, unsuspend, ..."""

    action: str
    installation: InstallationInfo
    sender: Optional[Sender] = None
    repositories: list[RepositoryRef] = []

    @field_validator("repositories", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


class InstallationRepositoriesPayload(BaseModel):
    """`installation_repositories` event: added or removed."""

    action: str
    installation: InstallationInfo
    sender: Optional[Sender] = None
    repository_selection: Optional[str] = None
    repositories_added: list[RepositoryRef] = []
    repositories_removed: list[RepositoryRef] = []

    @field_validator("repositories_added", "repositories_removed", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


class PushPayload(BaseModel):
    ref: Optional[str] = None
    commits: list[dict] = []
    repository: Optional[RepositoryRef] = None

    @field_validator("commits", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


class PullRequestInfo(BaseModel):
    number: Optional[int] = None
    title: Optional[str] = None


class PullRequestPayload(BaseModel):
    action: Optional[str] = None
    number: Optional[int] = None
    pull_request: Optional[PullRequestInfo] = None


class IssueInfo(BaseModel):
    number: Optional[int] = None
    title: Optional[str] = None


class IssuesPayload(BaseModel):
    action: Optional[str] = None
    issue: Optional[IssueInfo] = None
