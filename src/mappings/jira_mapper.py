"""Mapping of Jira items onto work items.

The mapper owns the compiled field mapping table of one export run and turns
every raw revision of an item into a WiRevision (fields, attachments, links,
development link), then hands the list to the RevisionCollapser.
"""

from collections.abc import Sequence
from typing import Any

from config.schemas.export_config import ExportConfig
from src.clients.provider import JiraProvider
from src.display import configure_logging
from src.mappings.field_mapping import MappingContext, build_field_mappings
from src.mappings.link_mapping import (
    EPIC_CHILD_FIELD,
    EPIC_CHILD_RELATION,
    EPIC_RELATION,
    PARENT_FIELD,
    PARENT_RELATION,
    has_same_issue_key,
    reverse_link_type,
    single_link,
)
from src.mappings.revision_collapser import IMPORTED_COMMENT, RevisionCollapser
from src.mappings.user_mapping import UserMapping
from src.models.export_summary import ExportIssuesSummary
from src.models.jira_revision import ADDED, JiraItem, JiraRevision
from src.models.work_item import (
    WiAttachment,
    WiDevelopmentLink,
    WiField,
    WiFieldReference,
    WiItem,
    WiLink,
    WiRevision,
)
from src.type_definitions import FieldMappingTable
from src.utils.lexo_rank import LexoRankDecoder

try:
    from src.config import logger
except Exception:  # noqa: BLE001
    logger = configure_logging("INFO", None)

# Maximum stored length of string fields in the target system
FIELD_LENGTH_LIMITS: dict[str, int] = {
    WiFieldReference.TITLE: 255,
    WiFieldReference.DESCRIPTION: 1_048_576,
}

TRUNCATION_MARKER = "..."


class JiraMapper:
    """Maps Jira items to work items using one export configuration."""

    def __init__(
        self,
        provider: JiraProvider,
        export_config: ExportConfig,
        summary: ExportIssuesSummary | None = None,
        rank_decoder: LexoRankDecoder | None = None,
        user_mapping: UserMapping | None = None,
    ) -> None:
        self.provider = provider
        self.export_config = export_config
        self.summary = summary if summary is not None else ExportIssuesSummary()
        self.rank_decoder = rank_decoder if rank_decoder is not None else LexoRankDecoder()
        self.user_mapping = user_mapping if user_mapping is not None else UserMapping()

        self.field_mappings: FieldMappingTable = build_field_mappings(
            MappingContext(
                export_config=export_config,
                provider=provider,
                summary=self.summary,
                rank_decoder=self.rank_decoder,
                user_mapper=self.map_user,
            ),
        )
        self.collapser = RevisionCollapser(provider, export_config.orphan_attachments)
        self.epic_link_key = (
            provider.get_custom_id(export_config.epic_link_field) or export_config.epic_link_field
        )

    def map(self, item: JiraItem) -> WiItem | None:
        """Map an item with all of its revisions.

        Returns:
            The work item, or None when the item's type has no type mapping

        """
        wi_type = self.export_config.target_type_for(item.type)
        if wi_type is None:
            logger.error(
                "Type mapping missing for '%s' with Jira type '%s'. Item was not exported which may "
                "cause missing links in items referencing this item.",
                item.key,
                item.type,
            )
            self.summary.add_unmapped_issue_type(item.type)
            return None

        revisions = [
            self.map_revision(revision, item.revisions[:position])
            for position, revision in enumerate(item.revisions)
        ]
        revisions = self.collapser.collapse(revisions)
        logger.debug("Mapped %s to %d revisions", item.key, len(revisions))
        return WiItem(origin_id=item.key, type=wi_type, revisions=revisions)

    def map_revision(
        self, revision: JiraRevision, history: Sequence[JiraRevision] = (),
    ) -> WiRevision:
        attachments = self.map_attachments(revision)
        return WiRevision(
            parent_origin_id=revision.parent_key,
            index=revision.index,
            time=revision.time,
            author=self.map_user(revision.author),
            original_comment_id=revision.original_comment_id,
            fields=self.map_fields(revision),
            attachments=attachments,
            links=self.map_links(revision, history),
            development_link=self.map_development_link(revision),
            attachment_references=bool(attachments),
        )

    def map_fields(self, revision: JiraRevision) -> list[WiField]:
        wi_type = self.export_config.target_type_for(revision.type)
        if wi_type is None:
            return []
        mapping = self.field_mappings.get(wi_type)
        if not mapping:
            return []

        fields = []
        for reference, extract in mapping.items():
            try:
                result = extract(revision)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Error mapping field %s on item %s (revision %d)",
                    reference,
                    revision.parent_key,
                    revision.index,
                )
                continue
            if not result.included:
                continue

            value = self.truncate_field(result.value, reference)
            fields.append(WiField(reference_name=reference, value="" if value is None else value))
        return fields

    def truncate_field(self, value: Any, reference: str) -> Any:
        """Cut string values of length-limited fields to their maximum length."""
        limit = FIELD_LENGTH_LIMITS.get(reference)
        if limit is None or value is None:
            return value

        text = str(value)
        if len(text) <= limit:
            return text
        logger.warning(
            "Field %s was truncated from %d to %d characters", reference, len(text), limit,
        )
        return text[: limit - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER

    def map_links(
        self, revision: JiraRevision, history: Sequence[JiraRevision] = (),
    ) -> list[WiLink]:
        links: list[WiLink] = []

        for action in revision.link_actions:
            link = action.value
            if self.export_config.force_issue_key_match and not has_same_issue_key(
                link.source_item, link.target_item,
            ):
                logger.warning(
                    "Skipping link %s -> %s: the item keys differ and force-issue-key-match is set",
                    link.source_item,
                    link.target_item,
                )
                continue

            link_type = self.export_config.link_type_for(link.link_type)
            if link_type is None:
                logger.warning(
                    "Link type '%s' is not mapped, link %s -> %s is skipped",
                    link.link_type,
                    link.source_item,
                    link.target_item,
                )
                continue
            if link.is_inward_link:
                link_type = reverse_link_type(link_type)

            links.append(
                WiLink(
                    change=action.change_type,
                    source_origin_id=link.source_item,
                    target_origin_id=link.target_item,
                    wi_type=link_type,
                ),
            )

        for field_key, relation in (
            (self.epic_link_key, EPIC_RELATION),
            (PARENT_FIELD, PARENT_RELATION),
            (EPIC_CHILD_FIELD, EPIC_CHILD_RELATION),
        ):
            link = single_link(
                revision, history, field_key, self.export_config.link_type_for(relation),
            )
            if link is not None:
                links.append(link)

        return links

    def map_attachments(self, revision: JiraRevision) -> list[WiAttachment]:
        attachments = []
        for action in revision.attachment_actions:
            attachment = action.value
            if action.change_type == ADDED:
                downloaded = self.provider.download_attachment(attachment)
                if downloaded is None:
                    continue
                attachment = downloaded

            attachments.append(
                WiAttachment(
                    change=action.change_type,
                    att_origin_id=attachment.id,
                    file_path=attachment.local_path,
                    comment=IMPORTED_COMMENT,
                ),
            )
        return attachments

    def map_development_link(self, revision: JiraRevision) -> WiDevelopmentLink | None:
        link = revision.development_link
        if link is None:
            return None
        repository = self.export_config.repository_for(link.repository) or link.repository
        return WiDevelopmentLink(id=link.id, repository=repository, type=link.type)

    def map_user(self, user: str | None) -> str | None:
        if not user or not user.strip():
            return None
        return self.user_mapping.map(self.provider.get_user_email(user))
