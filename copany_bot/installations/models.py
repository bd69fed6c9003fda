"""Row models for the Supabase tables this service reads and writes.

`Installation` maps to `copany_bot_installation`, `Copany` to `copany`.
Rows coming back from PostgREST carry extra columns (id, created_at, ...);
those are ignored.
"""

from enum import IntEnum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class TargetType(IntEnum):
    """Account type an installation targets, stored as an integer column."""

    USER = 0
    ORGANIZATION = 1

    @classmethod
    def from_github(cls, value: Optional[str]) -> "TargetType":
        """Map GitHub's "User"/"Organization" string; anything else is ORGANIZATION."""
        if value and value.lower() == "user":
            return cls.USER
        return cls.ORGANIZATION


def unique_ids(values: Iterable[Any]) -> list[str]:
    """Stringify ids and drop duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(str(value), None)
    return list(seen)


class Installation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    installation_id: str
    github_user_id: Optional[str] = None
    target_type: TargetType = TargetType.ORGANIZATION
    target_login: Optional[str] = None
    repository_ids: list[str] = []

    @field_validator("installation_id", "github_user_id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return None if v is None else str(v)

    @field_validator("repository_ids", mode="before")
    @classmethod
    def dedupe_repository_ids(cls, v):
        return unique_ids(v or [])

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Copany(BaseModel):
    """A linked project row; only the columns reconciliation touches."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    github_repository_id: Optional[str] = None
    is_connected_github: Optional[bool] = None

    @field_validator("github_repository_id", mode="before")
    @classmethod
    def stringify_repository_id(cls, v):
        return None if v is None else str(v)
