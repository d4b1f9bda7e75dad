"""Helpers for translating Jira issue links into work item links."""

import logging
from collections.abc import Sequence
from typing import Any

from src.models.jira_revision import ADDED, REMOVED, JiraRevision
from src.models.work_item import WiLink

logger = logging.getLogger(__name__)

FORWARD = "Forward"
REVERSE = "Reverse"

# Single-valued relations: (Jira field, link-map source)
PARENT_FIELD = "parent"
PARENT_RELATION = "Parent"
EPIC_RELATION = "Epic"
EPIC_CHILD_FIELD = "epic child"
EPIC_CHILD_RELATION = "Child"


def reverse_link_type(reference_name: str) -> str:
    """Swap the Forward/Reverse marker of a link type reference."""
    if FORWARD in reference_name:
        return reference_name.replace(FORWARD, REVERSE)
    return reference_name.replace(REVERSE, FORWARD)


def classify_link_type(
    link_types: Sequence[dict[str, Any]], descriptor: str, target_key: str,
) -> tuple[dict[str, Any] | None, bool]:
    """Find the link type a raw changelog descriptor refers to.

    Jira changelog entries describe links as e.g. ``"This issue blocks ABC-12"``.
    Outward phrases are matched before inward ones.

    Returns:
        (link type, is_inward); (None, False) when nothing matches

    """
    for link_type in link_types:
        if descriptor.endswith(f"{link_type.get('outward')} {target_key}"):
            return link_type, False
    for link_type in link_types:
        if descriptor.endswith(f"{link_type.get('inward')} {target_key}"):
            return link_type, True

    logger.error(
        "Link fits neither an inward nor an outward description. Link type = '%s', target item key = '%s'",
        descriptor,
        target_key,
    )
    return None, False


def issue_key_prefix(key: str) -> str:
    return key.split("-")[0]


def has_same_issue_key(source_item: str, target_item: str) -> bool:
    return issue_key_prefix(source_item) == issue_key_prefix(target_item)


def previous_value(history: Sequence[JiraRevision], field_key: str) -> Any:
    """Most recent non-empty value of a field in earlier revisions."""
    for revision in reversed(history):
        value = revision.get_field(field_key)
        if value not in (None, ""):
            return value
    return None


def single_link(
    revision: JiraRevision,
    history: Sequence[JiraRevision],
    field_key: str,
    link_type: str | None,
) -> WiLink | None:
    """Link record for a single-valued relation field changed in a revision.

    A value produces an added link to that value; a cleared value removes
    the link to the value the field held before.
    """
    if link_type is None or not field_key or not revision.has_field(field_key):
        return None

    value = revision.get_field(field_key)
    if value not in (None, ""):
        return WiLink(
            change=ADDED,
            source_origin_id=revision.parent_key,
            target_origin_id=str(value),
            wi_type=link_type,
        )

    removed = previous_value(history, field_key)
    if removed is None:
        return None
    return WiLink(
        change=REMOVED,
        source_origin_id=revision.parent_key,
        target_origin_id=str(removed),
        wi_type=link_type,
    )
