"""Interface of the Jira collaborator used by the revision mapping."""

from typing import Any, Protocol, runtime_checkable

from src.models.jira_revision import JiraAttachment


@runtime_checkable
class JiraProvider(Protocol):
    """What the mapper needs from Jira.

    Implementations must never raise for a single failed download or an
    unknown user; they return None or fall back to the identifier.
    """

    def get_custom_id(self, field_name: str) -> str | None:
        """Resolve a field display name (or key) to its field id."""
        ...

    def download_attachment(self, attachment: JiraAttachment) -> JiraAttachment | None:
        """Download an attachment; the result carries ``local_path``."""
        ...

    def download_attachment_by_id(self, attachment_id: int) -> JiraAttachment | None:
        """Fetch metadata and content of an attachment known only by id."""
        ...

    def get_user_email(self, user: str) -> str:
        """Email of a user, or the identifier itself when unavailable."""
        ...

    def get_link_types(self) -> list[dict[str, Any]]:
        """Issue link types with ``name``, ``inward`` and ``outward`` phrases."""
        ...
