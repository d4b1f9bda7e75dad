"""Tests for the field value transformers."""

from datetime import datetime

import pytest

from config.schemas.export_config import FieldMapItem
from src.models.export_summary import ExportIssuesSummary
from src.models.mapped_value import MappedValue
from src.utils import field_mapper_utils as fmu
from src.utils.timezone import UTC
from tests.utils.mock_factory import make_export_config, make_revision

pytestmark = pytest.mark.unit

SPRINTS = (
    "com.atlassian.greenhopper.service.sprint.Sprint@1a2b[id=3589,rapidViewId=137,state=CLOSED,"
    "name=Anonymous Sprint 199,startDate=2024-11-25T06:52:00.000+02:00,endDate=<null>,"
    "completeDate=<null>,sequence=3589,goal=];"
    "com.atlassian.greenhopper.service.sprint.Sprint@3c4d[id=3601,rapidViewId=137,state=CLOSED,"
    "name=Anonymous Sprint 201,startDate=<null>,endDate=<null>,completeDate=<null>,sequence=3601,goal=];"
    "com.atlassian.greenhopper.service.sprint.Sprint@5e6f[id=3600,rapidViewId=137,state=ACTIVE,"
    "name=Anonymous Sprint 200,startDate=<null>,endDate=<null>,completeDate=<null>,sequence=3600,goal=]"
)


@pytest.fixture
def sprint_rule() -> FieldMapItem:
    return FieldMapItem.model_validate(
        {
            "source": "Sprint",
            "target": "System.IterationPath",
            "mapper": "MapSprintExtended",
            "pattern-from": r"^Sprint (\d+)$",
            "pattern-to": "Iteration $1",
            "milestones": {
                "default": "M0",
                "milestone": [
                    {"threshold": 200, "name": "M2"},
                    {"threshold": 100, "name": "M1"},
                ],
            },
        },
    )


def test_map_remaining_work_converts_seconds_to_hours() -> None:
    assert fmu.map_remaining_work(7200) == 2.0
    assert fmu.map_remaining_work("5400") == 1.5


def test_map_remaining_work_invalid_value(caplog) -> None:
    assert fmu.map_remaining_work("soon") is None
    assert fmu.map_remaining_work(None) is None
    assert "Could not convert remaining work" in caplog.text


def test_map_tags() -> None:
    assert fmu.map_tags("backend urgent") == "backend;urgent"
    assert fmu.map_tags(["backend", "urgent"]) == "backend;urgent"
    assert fmu.map_tags("") == ""
    assert fmu.map_tags(None) == ""


def test_map_array() -> None:
    assert fmu.map_array("1.0,1.1") == "1.0;1.1"
    assert fmu.map_array(["1.0", "2.0"]) == "1.0;2.0"
    assert fmu.map_array("  ") is None


def test_map_sprint_selects_highest_sprint_number() -> None:
    assert fmu.map_sprint(SPRINTS) == "Anonymous Sprint 201"


def test_map_sprint_plain_value_uses_last_entry() -> None:
    assert fmu.map_sprint("Team Sprint 1, Team Sprint 2") == "Team Sprint 2"


def test_map_sprint_strips_invalid_path_characters() -> None:
    assert fmu.map_sprint("Release/1.0 Sprint: 3") == "Release1.0 Sprint 3"


def test_map_sprint_empty() -> None:
    assert fmu.map_sprint(None) is None
    assert fmu.map_sprint("") is None


@pytest.mark.parametrize(
    ("sprint", "expected"),
    [
        ("Sprint 150", "M1/Iteration 150"),
        ("Sprint 50", "M0/Iteration 50"),
        ("Sprint 250", "M2/Iteration 250"),
        ("Sprint 200", "M2/Iteration 200"),
    ],
)
def test_map_sprint_extended_milestone_bands(sprint_rule, sprint, expected) -> None:
    assert fmu.map_sprint_extended(sprint, sprint_rule) == expected


def test_map_sprint_extended_without_pattern_match(sprint_rule) -> None:
    assert fmu.map_sprint_extended("Hardening 4", sprint_rule) == "Hardening 4"


def test_map_sprint_extended_without_milestones() -> None:
    rule = FieldMapItem(
        source="Sprint",
        target="System.IterationPath",
        pattern_from=r"^Sprint (\d+)$",
        pattern_to="Iteration $1",
    )
    assert fmu.map_sprint_extended("Sprint 7", rule) == "Iteration 7"


def test_select_milestone_below_all_thresholds(sprint_rule) -> None:
    assert fmu.select_milestone(sprint_rule.milestones, 3) == "M0"
    assert fmu.select_milestone(None, 3) is None


def test_convert_replacement() -> None:
    assert fmu.convert_replacement("Iteration $1") == "Iteration \\g<1>"
    assert fmu.convert_replacement("${name}-x") == "\\g<name>-x"
    assert fmu.convert_replacement("cost $$") == "cost $"


def test_map_area_uses_last_value(caplog) -> None:
    assert fmu.map_area("Team A;Team B") == "Team B"
    assert "multiple values" in caplog.text
    assert fmu.map_area("Team A") == "Team A"


def test_map_date() -> None:
    assert fmu.map_date("05/Mar/24") == datetime(2024, 3, 5, tzinfo=UTC)
    assert fmu.map_date("next week") == "next week"


def test_coerce_value() -> None:
    assert fmu.coerce_value("3", "int") == MappedValue.of(3)
    assert fmu.coerce_value("2.5", "double") == MappedValue.of(2.5)
    assert fmu.coerce_value("abc", "string") == MappedValue.of("abc")
    assert fmu.coerce_value(None, "int") == MappedValue.of(None)


def test_coerce_value_failure_is_not_included() -> None:
    result = fmu.coerce_value("three", "integer")
    assert not result.included
    assert result.reason


def test_map_title() -> None:
    revision = make_revision(fields={"summary": "Login fails"})
    assert fmu.map_title(revision) == MappedValue.of("[PROJ-1] Login fails")
    assert fmu.map_title_without_key(revision) == MappedValue.of("Login fails")
    assert not fmu.map_title(make_revision(fields={"status": "Done"})).included


def test_map_title_with_empty_summary() -> None:
    revision = make_revision(fields={"summary": None})
    assert fmu.map_title(revision) == MappedValue.of("[PROJ-1] ")


def test_map_value_substitutes_configured_value() -> None:
    export_config = make_export_config()
    rule = export_config.field_map.fields[3]
    summary = ExportIssuesSummary()

    result = fmu.map_value(make_revision(fields={"status": "Done"}), rule, export_config, summary)

    assert result == MappedValue.of("Closed")
    assert summary.is_empty()


def test_map_value_missing_substitution_is_reported() -> None:
    export_config = make_export_config()
    rule = export_config.field_map.fields[3]
    summary = ExportIssuesSummary()

    result = fmu.map_value(
        make_revision(fields={"status": "In Review"}), rule, export_config, summary,
    )

    assert result == MappedValue.of(None)
    assert summary.unmapped_issue_states == {"User Story": {"In Review"}}


def test_map_value_absent_field() -> None:
    export_config = make_export_config()
    rule = export_config.field_map.fields[3]
    result = fmu.map_value(make_revision(fields={}), rule, export_config, ExportIssuesSummary())
    assert not result.included


def test_map_rendered_value_corrects_html() -> None:
    export_config = make_export_config()
    rule = export_config.field_map.fields[1]
    revision = make_revision(
        fields={"description$rendered": '<p><font color="red">Alert</font></p>'},
    )

    result = fmu.map_rendered_value(revision, rule, export_config)

    assert result == MappedValue.of('<p><span style="color: red;">Alert</span></p>')


def test_map_rendered_value_without_rendered_field() -> None:
    export_config = make_export_config()
    rule = export_config.field_map.fields[1]
    revision = make_revision(fields={"description": "plain"})
    assert not fmu.map_rendered_value(revision, rule, export_config).included


def test_map_rendered_value_unmapped_type() -> None:
    export_config = make_export_config()
    rule = export_config.field_map.fields[1]
    revision = make_revision(fields={"description$rendered": "<p>x</p>"}, issue_type="Task")
    assert not fmu.map_rendered_value(revision, rule, export_config).included
