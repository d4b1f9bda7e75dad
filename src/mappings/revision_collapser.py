"""Post-processing of an item's mapped revisions.

Rich text fields may embed images that are stored as Jira attachments. The
target system needs those files attached no later than the revision whose
text references them, so the collapser relocates or downloads them. Empty
revisions are dropped afterwards and the survivors renumbered.
"""

import logging
import re
from collections.abc import Sequence
from datetime import timedelta
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup

from config.schemas.export_config import OrphanAttachment
from src.clients.provider import JiraProvider
from src.models.jira_revision import ADDED
from src.models.work_item import RICH_TEXT_FIELDS, WiAttachment, WiField, WiRevision
from src.utils.html_corrector import ORPHAN_ATTACHMENT_HOST

logger = logging.getLogger(__name__)

# Minimum gap between consecutive revisions of one item
NUDGE = timedelta(milliseconds=50)

IMPORTED_COMMENT = "Imported from Jira"


def inline_image_sources(html: str) -> list[str]:
    """``src`` attributes of the images embedded in an HTML fragment."""
    soup = BeautifulSoup(html, "html.parser")
    sources = []
    for img in soup.find_all("img"):
        src = img.get("src")
        if not src or src.startswith("data:"):
            continue
        sources.append(src)
    return sources


def replace_image_source(html: str, old: str, new: str) -> str:
    """Point every image whose decoded ``src`` is ``old`` at ``new``."""
    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img", src=old):
        img["src"] = new
    return str(soup)


def _attachment_names(revisions: Sequence[WiRevision]) -> set[str]:
    return {
        attachment.file_name
        for revision in revisions
        for attachment in revision.attachments
        if attachment.file_name
    }


class RevisionCollapser:
    """Reconcile inline images with attachments, then drop empty revisions."""

    def __init__(
        self,
        provider: JiraProvider,
        orphan_attachments: Sequence[OrphanAttachment] = (),
    ) -> None:
        self.provider = provider
        self.orphan_attachments = list(orphan_attachments)

    def collapse(self, revisions: list[WiRevision]) -> list[WiRevision]:
        for position, revision in enumerate(revisions):
            earlier = revisions[:position]
            later = revisions[position + 1:]
            for reference in RICH_TEXT_FIELDS:
                field = revision.get_field(reference)
                if field is None or not isinstance(field.value, str):
                    continue
                self._reconcile_images(revision, field, earlier, later)

        kept = [revision for revision in revisions if revision.has_changes()]
        dropped = len(revisions) - len(kept)
        if dropped:
            logger.debug("Dropped %d empty revisions", dropped)
        return renumber(kept)

    def _reconcile_images(
        self,
        revision: WiRevision,
        field: WiField,
        earlier: Sequence[WiRevision],
        later: Sequence[WiRevision],
    ) -> None:
        earlier_names = _attachment_names(earlier)
        later_names = _attachment_names(later)

        for src in inline_image_sources(field.value):
            parsed = urlparse(src)
            path = unquote(parsed.path)

            if parsed.hostname == ORPHAN_ATTACHMENT_HOST:
                url = self._resolve_orphan(revision, path)
                if url:
                    field.value = replace_image_source(field.value, src, url)
                continue

            posix = PurePosixPath(path)
            filename = posix.name
            folder = posix.parent.name
            if not filename:
                continue
            alternate = re.sub("^" + re.escape(folder) + "_", "", filename)
            names = {filename, alternate}

            current_names = _attachment_names([revision])
            if names & (earlier_names | current_names):
                continue

            if names & later_names:
                self._relocate(revision, names, later)
                later_names = _attachment_names(later)
                continue

            self._download(revision, folder, filename)

    def _relocate(
        self, revision: WiRevision, names: set[str], later: Sequence[WiRevision],
    ) -> None:
        """Move the first matching later attachment into ``revision``."""
        for candidate in later:
            for attachment in candidate.attachments:
                if attachment.file_name in names:
                    revision.attachments.append(attachment)
                    revision.attachment_references = True
                    for other in later:
                        other.attachments = [a for a in other.attachments if a is not attachment]
                    logger.debug(
                        "Moved attachment '%s' to revision %d of %s",
                        attachment.file_name,
                        revision.index,
                        revision.parent_origin_id,
                    )
                    return

    def _download(self, revision: WiRevision, folder: str, filename: str) -> str | None:
        try:
            attachment_id = int(folder)
        except ValueError:
            logger.error(
                "Could not determine attachment id of inline image '%s' in %s",
                filename,
                revision.parent_origin_id,
            )
            return None

        downloaded = self.provider.download_attachment_by_id(attachment_id)
        if downloaded is None or not downloaded.local_path:
            logger.error(
                "Could not download attachment %s for inline image '%s' in %s",
                attachment_id,
                filename,
                revision.parent_origin_id,
            )
            return None

        revision.attachments.append(
            WiAttachment(
                change=ADDED,
                att_origin_id=filename,
                file_path=downloaded.local_path,
                comment=IMPORTED_COMMENT,
            ),
        )
        return downloaded.url

    def _resolve_orphan(self, revision: WiRevision, path: str) -> str | None:
        logger.warning(
            "Inline image in %s refers to an attachment that is no longer on the issue: %s",
            revision.parent_origin_id,
            path,
        )
        for orphan in self.orphan_attachments:
            if path.endswith("/" + orphan.filename) or path == "/" + orphan.filename:
                return self._download(revision, str(orphan.attachment_id), orphan.filename)

        logger.error(
            "No orphan attachment configured for '%s' in %s", path, revision.parent_origin_id,
        )
        return None


def renumber(revisions: list[WiRevision]) -> list[WiRevision]:
    """Assign consecutive indices and strictly increasing times."""
    previous = None
    for index, revision in enumerate(revisions):
        revision.index = index
        if previous is not None and revision.time <= previous:
            revision.time = previous + NUDGE
        previous = revision.time
    return revisions
