"""Models package for data structures used in the application."""

from src.models.export_result import ExportResult
from src.models.export_summary import ExportIssuesSummary
from src.models.jira_revision import JiraItem, JiraRevision
from src.models.mapped_value import MappedValue
from src.models.migration_error import MigrationError
from src.models.work_item import WiItem, WiRevision

__all__ = [
    "ExportIssuesSummary",
    "ExportResult",
    "JiraItem",
    "JiraRevision",
    "MappedValue",
    "MigrationError",
    "WiItem",
    "WiRevision",
]
