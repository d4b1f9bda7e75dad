"""Outcome of an export run."""

from typing import Any

from pydantic import BaseModel, Field


class ExportResult(BaseModel):
    """Counts and errors of one export run.

    ``details`` carries extra data such as the unmapped summary and can be
    accessed like a dictionary.
    """

    success: bool = False
    message: str = ""
    total_count: int = 0
    exported_count: int = 0
    skipped_count: int = 0
    unmapped_count: int = 0
    failed_count: int = 0
    errors: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def processed_count(self) -> int:
        return self.exported_count + self.skipped_count + self.unmapped_count + self.failed_count

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def __setitem__(self, key: str, value: Any) -> None:
        self.details[key] = value

    def __getitem__(self, key: str) -> Any:
        return self.details[key]
