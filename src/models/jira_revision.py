"""Raw Jira change history models.

A JiraItem holds the issue's changelog replayed into snapshots: each
JiraRevision carries the field values set in that change plus the
attachment, link and development link actions of the same change.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator

from src.type_definitions import ChangeType
from src.utils.timezone import ensure_utc

T = TypeVar("T")

ADDED: ChangeType = "Added"
REMOVED: ChangeType = "Removed"


class JiraAttachment(BaseModel):
    """Attachment metadata; ``local_path`` is set once downloaded."""

    id: str
    filename: str | None = None
    url: str | None = None
    local_path: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class JiraLink(BaseModel):
    source_item: str
    target_item: str
    link_type: str
    is_inward_link: bool = False


class JiraDevelopmentLink(BaseModel):
    id: str
    repository: str | None = None
    type: str = "commit"


class RevisionAction(BaseModel, Generic[T]):
    change_type: ChangeType
    value: T


class JiraRevision(BaseModel):
    """One changelog snapshot of a Jira issue."""

    parent_key: str = ""
    index: int = 0
    type: str | None = None
    author: str | None = None
    time: datetime
    fields: dict[str, Any] = Field(default_factory=dict)
    attachment_actions: list[RevisionAction[JiraAttachment]] = Field(default_factory=list)
    link_actions: list[RevisionAction[JiraLink]] = Field(default_factory=list)
    development_link: JiraDevelopmentLink | None = None
    original_comment_id: str | None = None

    @field_validator("fields", mode="before")
    @classmethod
    def _lowercase_keys(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k).lower(): value for k, value in v.items()}
        return v

    @field_validator("time")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def has_field(self, key: str) -> bool:
        return key.lower() in self.fields

    def get_field(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key.lower(), default)


class JiraItem(BaseModel):
    key: str
    type: str | None = None
    revisions: list[JiraRevision] = Field(default_factory=list)

    @model_validator(mode="after")
    def _link_revisions(self) -> "JiraItem":
        for revision in self.revisions:
            if not revision.parent_key:
                revision.parent_key = self.key
            if revision.type is None:
                revision.type = self.type
        return self
