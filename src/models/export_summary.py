"""Aggregated report of what could not be mapped during an export run."""

from pydantic import BaseModel, Field


class ExportIssuesSummary(BaseModel):
    """Unmapped issue types, states (per target type) and users."""

    unmapped_issue_types: set[str] = Field(default_factory=set)
    unmapped_issue_states: dict[str, set[str]] = Field(default_factory=dict)
    unmapped_users: set[str] = Field(default_factory=set)

    def add_unmapped_issue_type(self, issue_type: str | None) -> None:
        if issue_type:
            self.unmapped_issue_types.add(issue_type)

    def add_unmapped_issue_state(self, wi_type: str, state: str | None) -> None:
        if state:
            self.unmapped_issue_states.setdefault(wi_type, set()).add(state)

    def add_unmapped_user(self, user: str | None) -> None:
        if user:
            self.unmapped_users.add(user)

    def is_empty(self) -> bool:
        return not (self.unmapped_issue_types or self.unmapped_issue_states or self.unmapped_users)
