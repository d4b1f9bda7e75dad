"""Compilation of the declarative field map into extraction functions.

Each rule of the ``field-map`` becomes one extraction function, registered
under the rule's target reference for every work item type in its scope.
The result is a table ``{work item type: {target reference: function}}``
built once per export run.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from config.schemas.export_config import ALL_TYPES, COMMON_TYPES, ExportConfig, FieldMapItem
from src.clients.provider import JiraProvider
from src.models.export_summary import ExportIssuesSummary
from src.models.jira_revision import JiraRevision
from src.models.mapped_value import NOT_PRESENT, MappedValue
from src.type_definitions import FieldExtractor, FieldMapping, FieldMappingTable
from src.utils import field_mapper_utils as fmu
from src.utils.lexo_rank import LexoRankDecoder

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MappingContext:
    """Collaborators the extraction functions close over."""

    export_config: ExportConfig
    provider: JiraProvider
    summary: ExportIssuesSummary
    rank_decoder: LexoRankDecoder
    user_mapper: Callable[[str | None], str | None]


@dataclass(slots=True, frozen=True)
class CompiledRule:
    rule: FieldMapItem
    source_key: str
    custom_id: str | None
    context: MappingContext


ExtractorFactory: TypeAlias = Callable[[CompiledRule], FieldExtractor]


def if_changed(source_key: str, convert: Callable[[Any], Any] | None = None) -> FieldExtractor:
    """Emit a field only in revisions that set it, optionally converted."""
    key = source_key.lower()

    def extract(revision: JiraRevision) -> MappedValue:
        if key not in revision.fields:
            return MappedValue.skip(NOT_PRESENT)
        value = revision.fields[key]
        if convert is None:
            return MappedValue.of(value)
        converted = convert(value)
        return converted if isinstance(converted, MappedValue) else MappedValue.of(converted)

    return extract


def _sprint_extended(compiled: CompiledRule) -> FieldExtractor:
    rule = compiled.rule
    keys = [rule.source or "", compiled.source_key]

    def extract(revision: JiraRevision) -> MappedValue:
        for key in keys:
            if revision.has_field(key):
                return MappedValue.of(fmu.map_sprint_extended(revision.get_field(key), rule))
        return MappedValue.skip(NOT_PRESENT)

    return extract


# Transformers selectable by the ``mapper`` attribute of a rule
MAPPERS: dict[str, ExtractorFactory] = {
    "MapTitle": lambda c: fmu.map_title,
    "MapTitleWithoutKey": lambda c: fmu.map_title_without_key,
    "MapUser": lambda c: if_changed(c.source_key, c.context.user_mapper),
    "MapSprint": lambda c: if_changed(c.source_key, fmu.map_sprint),
    "MapSprintExtended": _sprint_extended,
    "MapTags": lambda c: if_changed(c.source_key, fmu.map_tags),
    "MapArray": lambda c: if_changed(c.source_key, fmu.map_array),
    "MapRemainingWork": lambda c: if_changed(c.source_key, fmu.map_remaining_work),
    "MapRendered": lambda c: lambda r: fmu.map_rendered_value(
        r, c.rule, c.context.export_config, c.custom_id,
    ),
    "MapLexoRank": lambda c: if_changed(c.source_key, c.context.rank_decoder.decode),
    "MapArea": lambda c: if_changed(c.source_key, fmu.map_area),
}


def compile_rule(compiled: CompiledRule) -> FieldExtractor:
    """Select the extraction function for one rule.

    Value mappings take precedence over a named mapper, which takes
    precedence over the declared data type.
    """
    rule = compiled.rule
    context = compiled.context

    if rule.mapping is not None:
        return lambda r: fmu.map_value(
            r, rule, context.export_config, context.summary, compiled.custom_id,
        )

    if rule.mapper:
        factory = MAPPERS.get(rule.mapper)
        if factory is None:
            logger.warning(
                "Unknown mapper '%s' for field '%s', using the value as is", rule.mapper, rule.source,
            )
            return if_changed(compiled.source_key)
        return factory(compiled)

    data_type = rule.data_type
    return if_changed(compiled.source_key, lambda v: fmu.coerce_value(v, data_type))


def resolve_scope(rule: FieldMapItem, target_types: list[str]) -> list[str]:
    """Work item types a rule is registered for.

    ``not-for`` selects every known type except the listed ones; otherwise
    the ``for`` list is used as given (``All``/``Common`` included).
    """
    if rule.not_for and rule.not_for.strip():
        excluded = rule.not_for_types
        return [t for t in target_types if t not in excluded]
    return rule.for_types or [ALL_TYPES]


def merge_mappings(type_fields: FieldMapping, common_fields: FieldMapping) -> FieldMapping:
    """Type-specific entries first, then common entries not overridden."""
    merged = dict(type_fields)
    for reference, extractor in common_fields.items():
        merged.setdefault(reference, extractor)
    return merged


def build_field_mappings(context: MappingContext) -> FieldMappingTable:
    logger.info("Initializing Jira field mapping...")

    export_config = context.export_config
    target_types = export_config.target_types
    type_fields: dict[str, FieldMapping] = {wi_type: {} for wi_type in target_types}
    common_fields: FieldMapping = {}

    for rule in export_config.field_map.fields:
        if not rule.source:
            continue

        custom_id = None
        if rule.is_custom_field:
            custom_id = context.provider.get_custom_id(rule.source)
            if custom_id is None:
                logger.warning(
                    "Could not find the field id for '%s', please check the field mapping!", rule.source,
                )
        source_key = custom_id or rule.source
        extractor = compile_rule(CompiledRule(rule, source_key, custom_id, context))

        for wi_type in resolve_scope(rule, target_types):
            if wi_type in (ALL_TYPES, COMMON_TYPES):
                table = common_fields
            elif wi_type in type_fields:
                table = type_fields[wi_type]
            else:
                logger.warning(
                    "No target type '%s' is set, field %s cannot be mapped.", wi_type, rule.source,
                )
                continue

            if rule.target in table:
                logger.warning(
                    "Ignoring target mapping with key: '%s' for '%s', because it is already configured.",
                    rule.target,
                    wi_type,
                )
                continue
            table[rule.target] = extractor

    mappings = {
        wi_type: merge_mappings(fields, common_fields) for wi_type, fields in type_fields.items()
    }
    logger.debug(
        "Compiled field mappings for %d work item types (%d common fields)",
        len(mappings),
        len(common_fields),
    )
    return mappings
