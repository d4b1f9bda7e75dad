"""Normalized work item models handed to the target-system writer."""

from datetime import datetime
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.type_definitions import ChangeType
from src.utils.timezone import ensure_utc


class WiFieldReference:
    """Field references with special handling."""

    TITLE = "System.Title"
    DESCRIPTION = "System.Description"
    HISTORY = "System.History"
    REPRO_STEPS = "Microsoft.VSTS.TCM.ReproSteps"
    STATE = "System.State"


# Rich text fields scanned for inline images while collapsing
RICH_TEXT_FIELDS = (
    WiFieldReference.DESCRIPTION,
    WiFieldReference.HISTORY,
    WiFieldReference.REPRO_STEPS,
)


class WiField(BaseModel):
    reference_name: str
    value: Any = None


class WiAttachment(BaseModel):
    change: ChangeType
    att_origin_id: str
    file_path: str | None = None
    comment: str | None = None

    @property
    def file_name(self) -> str | None:
        if not self.file_path:
            return None
        return PurePath(self.file_path.replace("\\", "/")).name


class WiLink(BaseModel):
    change: ChangeType
    source_origin_id: str
    target_origin_id: str
    wi_type: str


class WiDevelopmentLink(BaseModel):
    id: str
    repository: str | None = None
    type: str = "commit"


class WiRevision(BaseModel):
    """One normalized revision.

    Mutable only while the owning item's revision list is being collapsed.
    """

    parent_origin_id: str
    index: int
    time: datetime
    author: str | None = None
    original_comment_id: str | None = None
    fields: list[WiField] = Field(default_factory=list)
    attachments: list[WiAttachment] = Field(default_factory=list)
    links: list[WiLink] = Field(default_factory=list)
    development_link: WiDevelopmentLink | None = None
    attachment_references: bool = False

    @field_validator("time")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def has_changes(self) -> bool:
        return bool(
            self.fields or self.attachments or self.links or self.development_link is not None
        )

    def get_field(self, reference_name: str) -> WiField | None:
        for field in self.fields:
            if field.reference_name == reference_name:
                return field
        return None


class WiItem(BaseModel):
    origin_id: str
    type: str
    revisions: list[WiRevision] = Field(default_factory=list)
