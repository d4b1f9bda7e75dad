"""Field value transformers used by the compiled field mappings.

Value-level helpers take a raw Jira value and return the converted value.
Revision-level helpers take the whole JiraRevision because they compose
several fields or depend on the item's target type; they return a
MappedValue so that "do not emit this field" is an ordinary result.
"""

import logging
import re
from datetime import datetime
from typing import Any

from config.schemas.export_config import ExportConfig, FieldMapItem, Milestones
from src.models.export_summary import ExportIssuesSummary
from src.models.jira_revision import JiraRevision
from src.models.mapped_value import NOT_PRESENT, MappedValue
from src.utils.html_corrector import correct_rendered_html
from src.utils.jira_sprint import SPRINT_PREFIX, JiraSprint
from src.utils.timezone import UTC

logger = logging.getLogger(__name__)

JIRA_DATE_FORMAT = "%d/%b/%y"
RENDERED_SUFFIX = "$rendered"
SUMMARY_FIELD = "summary"
STATUS_FIELD = "status"

# Characters the target system rejects in classification node names
_INVALID_PATH_CHARACTERS = re.compile(r"[/$?*:\"&<>#%|+]")
_TRAILING_NUMBER = re.compile(r"\d+$")
_DOTNET_GROUP_REFERENCE = re.compile(r"\$(?:\{(\w+)\}|(\d+)|(\$))")


# ---------------------------------------------------------------------------
# Value-level transformers
# ---------------------------------------------------------------------------


def map_remaining_work(seconds: Any) -> float | None:
    """Convert remaining work from seconds to hours."""
    try:
        if seconds is None:
            raise ValueError("no value")
        return float(seconds) / 3600
    except (TypeError, ValueError):
        logger.warning(
            "Could not convert remaining work value '%s' to hours, leaving it empty", seconds,
        )
        return None


def map_tags(labels: Any) -> str:
    """Join space separated labels with semicolons."""
    if isinstance(labels, list):
        labels = " ".join(str(label) for label in labels)
    if labels is None or not str(labels).strip():
        return ""
    return ";".join(str(labels).split(" "))


def map_array(value: Any) -> str | None:
    """Join a comma separated value with semicolons."""
    if isinstance(value, list):
        value = ",".join(str(v) for v in value)
    if value is None or not str(value).strip():
        return None
    return ";".join(str(value).split(","))


def map_sprint(value: Any) -> str | None:
    """Return the iteration name for a sprint field value.

    Serialized sprint objects resolve to the sprint with the highest number
    in its name (the last one on ties). Plain values are treated as a comma
    separated list of which the last entry wins.
    """
    if isinstance(value, list):
        value = ",".join(str(v) for v in value)
    if value is None or not str(value).strip():
        return None
    value = str(value)

    if value.startswith(SPRINT_PREFIX):
        sprints = JiraSprint.parse_list(value)
        if not sprints:
            logger.error(
                "Missing 'name' property for sprint object, skipping this sprint. The full object was: '%s'",
                value,
            )
            return None
        selected = sprints[0]
        for sprint in sprints[1:]:
            if sprint.sprint_number >= selected.sprint_number:
                selected = sprint
        return selected.name

    iteration_path = [part.strip() for part in value.split(",")][-1]
    return _INVALID_PATH_CHARACTERS.sub("", iteration_path).strip()


def select_milestone(milestones: Milestones | None, sprint_id: int) -> str | None:
    """Pick the band with the highest threshold not above ``sprint_id``."""
    if milestones is None:
        return None
    for milestone in sorted(milestones.milestone, key=lambda m: m.threshold, reverse=True):
        if milestone.threshold <= sprint_id:
            return milestone.name
    return milestones.default


def map_sprint_extended(value: Any, rule: FieldMapItem) -> str | None:
    """Build a hierarchical ``milestone/iteration`` path from a sprint value."""
    iteration_path = map_sprint(value)
    if iteration_path is None:
        return None

    if not rule.pattern_from or not re.search(rule.pattern_from, iteration_path):
        return iteration_path

    rewritten = re.sub(
        rule.pattern_from, convert_replacement(rule.pattern_to or ""), iteration_path,
    )
    match = _TRAILING_NUMBER.search(rewritten)
    if not match:
        return rewritten

    milestone = select_milestone(rule.milestones, int(match.group()))
    if milestone is None:
        return rewritten
    return f"{milestone}/{rewritten}"


def map_area(value: Any) -> Any:
    if isinstance(value, str) and ";" in value:
        value = value.split(";")[-1]
        logger.warning("Area path contains multiple values. Using the last value: %s", value)
    return value


def map_date(value: Any) -> Any:
    """Parse a ``dd/Mon/yy`` date; other values are returned unchanged."""
    if value is None:
        return None
    try:
        return datetime.strptime(str(value), JIRA_DATE_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return value


def coerce_value(value: Any, data_type: str) -> MappedValue:
    """Coerce a raw value to the declared primitive type of a rule."""
    if value is None:
        return MappedValue.of(None)

    match data_type.lower():
        case "int" | "integer":
            converter = int
        case "double":
            converter = float
        case "date" | "datetime":
            return MappedValue.of(map_date(value))
        case _:
            return MappedValue.of(value)

    try:
        return MappedValue.of(converter(value))
    except (TypeError, ValueError):
        logger.warning("Could not convert '%s' to %s", value, data_type)
        return MappedValue.skip(f"value is not a valid {data_type}")


def convert_replacement(replacement: str) -> str:
    """Translate ``$1`` / ``${name}`` group references for ``re.sub``."""
    parts = []
    position = 0
    for match in _DOTNET_GROUP_REFERENCE.finditer(replacement):
        parts.append(replacement[position:match.start()].replace("\\", "\\\\"))
        group = match.group(1) or match.group(2)
        parts.append(f"\\g<{group}>" if group else "$")
        position = match.end()
    parts.append(replacement[position:].replace("\\", "\\\\"))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Revision-level transformers
# ---------------------------------------------------------------------------


def map_title(revision: JiraRevision) -> MappedValue:
    if not revision.has_field(SUMMARY_FIELD):
        return MappedValue.skip(NOT_PRESENT)
    return MappedValue.of(f"[{revision.parent_key}] {revision.get_field(SUMMARY_FIELD) or ''}")


def map_title_without_key(revision: JiraRevision) -> MappedValue:
    if not revision.has_field(SUMMARY_FIELD):
        return MappedValue.skip(NOT_PRESENT)
    return MappedValue.of(revision.get_field(SUMMARY_FIELD))


def map_value(
    revision: JiraRevision,
    rule: FieldMapItem,
    export_config: ExportConfig,
    summary: ExportIssuesSummary,
    custom_id: str | None = None,
) -> MappedValue:
    """Substitute a raw value through the value mappings of the config.

    The substitution declared on the first rule with the same source and
    target that applies to the revision's target type is used. A value
    without substitution is reported and emitted empty.
    """
    source = rule.source or ""
    if revision.has_field(source):
        value = revision.get_field(source)
    elif custom_id and revision.has_field(custom_id):
        value = revision.get_field(custom_id)
    else:
        return MappedValue.skip(NOT_PRESENT)

    target_type = export_config.target_type_for(revision.type)
    for candidate in export_config.field_map.fields:
        if candidate.mapping is None:
            continue
        if candidate.source != rule.source or candidate.target != rule.target:
            continue
        if not candidate.applies_to(target_type):
            continue

        if value is None:
            return MappedValue.of(None)

        _, mapped = candidate.mapping.lookup(value)
        if not mapped:
            logger.warning(
                "Missing mapping value '%s' for field '%s' for item type '%s' (%s)",
                value,
                source,
                target_type,
                revision.parent_key,
            )
            if source == STATUS_FIELD and target_type:
                summary.add_unmapped_issue_state(target_type, str(value))
        return MappedValue.of(mapped)

    return MappedValue.of(value)


def map_rendered_value(
    revision: JiraRevision,
    rule: FieldMapItem,
    export_config: ExportConfig,
    custom_id: str | None = None,
) -> MappedValue:
    """Emit the rendered HTML counterpart of a field, corrected for import."""
    field_name = f"{custom_id or rule.source}{RENDERED_SUFFIX}"

    target_type = export_config.target_type_for(revision.type)
    if target_type is None:
        return MappedValue.skip("item type is not mapped")
    if not revision.has_field(field_name):
        return MappedValue.skip(NOT_PRESENT)

    value = revision.get_field(field_name)
    for candidate in export_config.field_map.fields:
        if candidate.mapping is None or not candidate.source:
            continue
        if candidate.source.lower() != field_name.lower() or not candidate.applies_to(target_type):
            continue
        _, mapped = candidate.mapping.lookup(value)
        if not mapped:
            logger.warning(
                "Missing mapping value '%s' for field '%s' (%s)", value, field_name, revision.parent_key,
            )
        return MappedValue.of(mapped)

    return MappedValue.of(
        correct_rendered_html(value, export_config.include_jira_css_styles, revision.parent_key),
    )
