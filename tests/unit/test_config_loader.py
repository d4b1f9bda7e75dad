"""Tests for settings and export configuration loading."""

import json

import pytest
import yaml
from pydantic import ValidationError

from config.loader import ConfigLoader, load_export_config
from config.schemas.export_config import FieldMapItem
from config.schemas.settings import Settings
from src.models.migration_error import MigrationError

pytestmark = pytest.mark.unit

EXPORT_CONFIG = {
    "include-jira-css-styles": True,
    "field-overrides": {"Rank": 10301},
    "type-map": {"type": [{"source": "Story", "target": "User Story"}, {"source": "Bug", "target": "Bug"}]},
    "link-map": {"link": [{"source": "Blocks", "target": "System.LinkTypes.Dependency-Forward"}]},
    "field-map": {
        "field": [
            {"source": "summary", "target": "System.Title", "mapper": "MapTitle"},
            {"source": "Story Points", "source-type": "name", "target": "Custom.Points", "for": "User Story", "type": "double"},
        ],
    },
    "orphan-attachments": [{"filename": "lost.png", "attachment-id": 99}],
}


def test_load_yaml_export_config(tmp_path) -> None:
    path = tmp_path / "export.yaml"
    path.write_text(yaml.safe_dump(EXPORT_CONFIG), encoding="utf-8")

    export_config = load_export_config(path)

    assert export_config.include_jira_css_styles is True
    assert export_config.field_overrides == {"Rank": 10301}
    assert export_config.target_types == ["User Story", "Bug"]
    assert export_config.field_map.fields[1].is_custom_field
    assert export_config.orphan_attachments[0].attachment_id == 99
    assert export_config.epic_link_field == "Epic Link"


def test_load_json_export_config(tmp_path) -> None:
    path = tmp_path / "export.json"
    path.write_text(json.dumps(EXPORT_CONFIG), encoding="utf-8")

    export_config = load_export_config(path)

    assert export_config.link_type_for("Blocks") == "System.LinkTypes.Dependency-Forward"
    assert export_config.link_type_for("Relates") is None
    assert export_config.target_type_for("Story") == "User Story"


def test_missing_export_config(tmp_path) -> None:
    with pytest.raises(MigrationError, match="not found"):
        load_export_config(tmp_path / "missing.yaml")


def test_export_config_must_be_a_mapping(tmp_path) -> None:
    path = tmp_path / "export.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(MigrationError, match="must contain a mapping"):
        load_export_config(path)


def test_invalid_export_config(tmp_path) -> None:
    path = tmp_path / "export.yaml"
    path.write_text(yaml.safe_dump({"field-map": {"field": [{"source": "summary"}]}}), encoding="utf-8")
    with pytest.raises(MigrationError, match="Invalid export configuration"):
        load_export_config(path)


def test_malformed_yaml(tmp_path) -> None:
    path = tmp_path / "export.yaml"
    path.write_text("field-map: [unclosed\n", encoding="utf-8")
    with pytest.raises(MigrationError, match="Failed to read"):
        load_export_config(path)


def test_unknown_export_keys_are_ignored(tmp_path) -> None:
    path = tmp_path / "export.yaml"
    path.write_text(yaml.safe_dump({"source-project": "PROJ", "query": "project = PROJ"}), encoding="utf-8")

    export_config = load_export_config(path)

    assert not hasattr(export_config, "source_project")
    assert export_config.field_map.fields == []


def test_applies_to() -> None:
    everywhere = FieldMapItem(target="x")
    only_bugs = FieldMapItem(target="x", for_="Bug, Epic")
    not_bugs = FieldMapItem(target="x", for_="Epic", not_for="Bug")

    assert everywhere.applies_to("Bug")
    assert only_bugs.applies_to("Epic")
    assert not only_bugs.applies_to("User Story")
    assert not_bugs.applies_to("User Story")
    assert not not_bugs.applies_to("Bug")


def test_settings_validation() -> None:
    with pytest.raises(ValidationError):
        Settings(jira_url="ftp://jira.example.com")
    with pytest.raises(ValidationError):
        Settings(jira_api_token="short")

    settings = Settings(jira_url="https://jira.example.com/", log_level="debug")
    assert settings.jira_url == "https://jira.example.com"
    assert settings.log_level == "DEBUG"


def test_settings_from_environment(test_env) -> None:
    test_env["J2W_JIRA_DOWNLOAD_TIMEOUT"] = "25"
    test_env["J2W_SSL_VERIFY"] = "false"

    jira_config = Settings().get_jira_config()

    assert jira_config["download_timeout"] == 25
    assert jira_config["verify_ssl"] is False


def test_yaml_overrides(tmp_path, caplog) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump({"jira": {"download_timeout": 120, "colour": "blue"}, "export": {"log_level": "WARNING"}}),
        encoding="utf-8",
    )

    loader = ConfigLoader(path)

    assert loader.get_jira_config()["download_timeout"] == 120
    assert loader.get_export_config()["log_level"] == "WARNING"
    assert "Ignoring unknown setting 'jira.colour'" in caplog.text
