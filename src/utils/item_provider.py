"""File-backed storage of raw Jira items and mapped work items.

Raw items are read from one JSON file per issue (``<key>.json``) produced by
the Jira export. Mapped items are written to the output directory in the same
layout, which the importer enumerates later.
"""

import re
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from src import config
from src.models.jira_revision import JiraItem
from src.models.migration_error import ItemLoadError, MigrationError
from src.models.work_item import WiItem
from src.utils import data_handler

# Doubly escaped unicode sequences the importer cannot read
_INVALID_UNICODE_ESCAPE = re.compile(r"\\\\u[0-9A-F]{4,}")
_ESCAPE_CHARACTER = "\\u001b"


class WiItemProvider:
    """Reads and writes mapped work items as ``<origin id>.json``."""

    def __init__(self, items_dir: Path | str) -> None:
        self.items_dir = Path(items_dir)

    def path_for(self, origin_id: str) -> Path:
        return self.items_dir / f"{origin_id}.json"

    def exists(self, origin_id: str) -> bool:
        return self.path_for(origin_id).exists()

    def save(self, item: WiItem) -> Path:
        path = self.path_for(item.origin_id)
        data_handler.save_to_path(item, path)
        return path

    def load(self, origin_id: str) -> WiItem:
        return self._load_file(self.path_for(origin_id))

    def _load_file(self, path: Path) -> WiItem:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Cannot read work item file {path}"
            raise ItemLoadError(msg, path) from e

        if _INVALID_UNICODE_ESCAPE.search(content):
            config.logger.warning(
                "Removing unsupported unicode escape sequences from %s", path,
            )
            content = _INVALID_UNICODE_ESCAPE.sub("", content)
        content = content.replace(_ESCAPE_CHARACTER, "\\n")

        try:
            item = WiItem.model_validate_json(content)
        except ValidationError as e:
            msg = f"Invalid work item file {path}: {e}"
            raise ItemLoadError(msg, path) from e

        for revision in item.revisions:
            revision.parent_origin_id = item.origin_id
        return item

    def enumerate_all_items(self) -> Iterator[WiItem]:
        """All readable work items in file name order; broken files are skipped."""
        for path in sorted(self.items_dir.glob("*.json")):
            try:
                yield self._load_file(path)
            except ItemLoadError as e:
                config.logger.warning("Skipping work item file: %s", e)


class JiraItemProvider:
    """Enumerates raw Jira items stored as ``<key>.json``."""

    def __init__(self, raw_dir: Path | str) -> None:
        self.raw_dir = Path(raw_dir)
        if not self.raw_dir.is_dir():
            msg = f"Raw item directory does not exist: {self.raw_dir}"
            raise MigrationError(msg)

    def _paths(self) -> list[Path]:
        return sorted(self.raw_dir.glob("*.json"))

    def count(self) -> int:
        return len(self._paths())

    def enumerate_items(self) -> Iterator[JiraItem]:
        for path in self._paths():
            try:
                yield data_handler.load(JiraItem, path)
            except MigrationError as e:
                config.logger.warning("Skipping raw item file: %s", e)
