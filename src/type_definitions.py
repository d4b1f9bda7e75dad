"""Type definitions for the Jira work item export.

This module contains type aliases and literal types used throughout
the export process.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Literal, TypeAlias

if TYPE_CHECKING:
    from src.models.mapped_value import MappedValue
    from src.models.jira_revision import JiraRevision

# Extraction function compiled from one mapping rule
FieldExtractor: TypeAlias = Callable[["JiraRevision"], "MappedValue"]

# Ordered target field reference -> extraction function
FieldMapping: TypeAlias = dict[str, FieldExtractor]

# Target work item type -> FieldMapping
FieldMappingTable: TypeAlias = dict[str, FieldMapping]

LogLevel = Literal["DEBUG", "INFO", "NOTICE", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

DirType = Literal["root", "attachments", "logs", "output", "results"]

ChangeType = Literal["Added", "Removed"]
