"""Tests for file-backed raw and work item storage."""

import pytest

from src.models.migration_error import ItemLoadError, MigrationError
from src.models.work_item import WiField, WiItem, WiRevision
from src.utils import data_handler
from src.utils.item_provider import JiraItemProvider, WiItemProvider
from tests.utils.mock_factory import BASE_TIME, make_item, make_revision

pytestmark = pytest.mark.unit


def _wi_item(title: str = "[PROJ-1] Login fails", origin_id: str = "PROJ-1") -> WiItem:
    return WiItem(
        origin_id=origin_id,
        type="User Story",
        revisions=[
            WiRevision(
                parent_origin_id=origin_id,
                index=0,
                time=BASE_TIME,
                fields=[WiField(reference_name="System.Title", value=title)],
            ),
        ],
    )


def test_save_and_load(tmp_path) -> None:
    items = WiItemProvider(tmp_path)

    path = items.save(_wi_item())

    assert path == tmp_path / "PROJ-1.json"
    assert items.exists("PROJ-1")
    assert items.load("PROJ-1") == _wi_item()


def test_load_sets_parent_origin_id(tmp_path) -> None:
    items = WiItemProvider(tmp_path)
    item = _wi_item()
    item.revisions[0].parent_origin_id = "OTHER-9"
    items.save(item)

    assert items.load("PROJ-1").revisions[0].parent_origin_id == "PROJ-1"


def test_load_removes_unsupported_unicode_escapes(tmp_path, caplog) -> None:
    items = WiItemProvider(tmp_path)
    path = items.save(_wi_item("Smile EMOJI done"))
    path.write_text(
        path.read_text(encoding="utf-8").replace("EMOJI", r"\\uD83D\\uDE00"),
        encoding="utf-8",
    )

    loaded = items.load("PROJ-1")

    assert loaded.revisions[0].fields[0].value == "Smile  done"
    assert "unsupported unicode escape" in caplog.text


def test_load_replaces_escape_character(tmp_path) -> None:
    items = WiItemProvider(tmp_path)
    path = items.save(_wi_item("first ESC second"))
    path.write_text(
        path.read_text(encoding="utf-8").replace(" ESC ", r"\u001b"),
        encoding="utf-8",
    )

    assert items.load("PROJ-1").revisions[0].fields[0].value == "first\nsecond"


def test_load_missing_item(tmp_path) -> None:
    with pytest.raises(ItemLoadError):
        WiItemProvider(tmp_path).load("PROJ-404")


def test_enumerate_all_items_skips_broken_files(tmp_path, caplog) -> None:
    items = WiItemProvider(tmp_path)
    items.save(_wi_item(origin_id="PROJ-2"))
    items.save(_wi_item(origin_id="PROJ-1"))
    (tmp_path / "PROJ-3.json").write_text('{"origin_id": "PROJ-3"}', encoding="utf-8")

    loaded = list(items.enumerate_all_items())

    assert [item.origin_id for item in loaded] == ["PROJ-1", "PROJ-2"]
    assert "Skipping work item file" in caplog.text


def test_jira_item_provider(tmp_path, caplog) -> None:
    data_handler.save_to_path(make_item([make_revision(0, {"summary": "a"})]), tmp_path / "PROJ-1.json")
    data_handler.save_to_path(
        make_item([make_revision(0, {"summary": "b"}, key="PROJ-2")], key="PROJ-2"),
        tmp_path / "PROJ-2.json",
    )
    (tmp_path / "PROJ-3.json").write_text("{not json", encoding="utf-8")

    raw_items = JiraItemProvider(tmp_path)
    loaded = list(raw_items.enumerate_items())

    assert raw_items.count() == 3
    assert [item.key for item in loaded] == ["PROJ-1", "PROJ-2"]
    assert loaded[1].revisions[0].get_field("summary") == "b"
    assert "Skipping raw item file" in caplog.text


def test_jira_item_provider_requires_directory(tmp_path) -> None:
    with pytest.raises(MigrationError, match="does not exist"):
        JiraItemProvider(tmp_path / "missing")
