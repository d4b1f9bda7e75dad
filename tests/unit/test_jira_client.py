"""Tests for the Jira client on top of a mocked ``jira.JIRA`` connection."""

from unittest.mock import MagicMock

import pytest
import requests
from jira import JIRAError

from src.clients.jira_client import JiraApiError
from src.mappings.revision_collapser import RevisionCollapser
from src.models.export_summary import ExportIssuesSummary
from src.models.jira_revision import JiraAttachment
from src.models.work_item import WiField, WiFieldReference, WiRevision
from tests.utils.mock_factory import BASE_TIME, create_mock_jira_client

pytestmark = pytest.mark.unit


@pytest.fixture
def summary() -> ExportIssuesSummary:
    return ExportIssuesSummary()


@pytest.fixture
def client(tmp_path, summary):
    return create_mock_jira_client(attachments_dir=tmp_path, summary=summary)


def test_get_custom_id_by_name_and_key(client) -> None:
    assert client.get_custom_id("Epic Link") == "customfield_10100"
    assert client.get_custom_id("sprint") == "customfield_10200"
    assert client.get_custom_id("customfield_10200") == "customfield_10200"
    assert client.get_custom_id("Team") is None
    client.jira.fields.assert_called_once()


def test_get_custom_id_ambiguous_name(client, caplog) -> None:
    assert client.get_custom_id("Rank") == "customfield_10300"
    assert "Multiple Jira fields named 'Rank'" in caplog.text


def test_get_custom_id_with_field_override(tmp_path) -> None:
    client = create_mock_jira_client(attachments_dir=tmp_path, field_overrides={"Rank": 10301})

    assert client.get_custom_id("Rank") == "customfield_10301"
    assert client.get_custom_id("Rank.10300") == "customfield_10300"


def test_field_catalog_failure(client) -> None:
    client.jira.fields.side_effect = RuntimeError("HTTP 500")
    with pytest.raises(JiraApiError, match="field catalog"):
        client.get_custom_id("Sprint")


def test_download_attachment(client, tmp_path) -> None:
    response = MagicMock()
    response.iter_content.return_value = [b"PNG", b"", b"DATA"]
    client.jira._session.get.return_value = response

    attachment = JiraAttachment(id="5", filename="pic.png", url="https://jira.example.com/att/5")
    downloaded = client.download_attachment(attachment)

    target = tmp_path / "5" / "pic.png"
    assert downloaded.local_path == str(target)
    assert target.read_bytes() == b"PNGDATA"
    assert attachment.local_path is None


def test_download_attachment_fetches_missing_metadata(client, tmp_path) -> None:
    client.jira.attachment.return_value = MagicMock(filename="doc.pdf", content="https://jira.example.com/att/7")
    client.jira._session.get.return_value.iter_content.return_value = [b"%PDF"]

    downloaded = client.download_attachment_by_id(7)

    client.jira.attachment.assert_called_once_with("7")
    assert downloaded.filename == "doc.pdf"
    assert (tmp_path / "7" / "doc.pdf").read_bytes() == b"%PDF"


def test_download_failure_returns_none(client, caplog) -> None:
    client.jira._session.get.side_effect = requests.ConnectionError("connection reset")

    attachment = JiraAttachment(id="5", filename="pic.png", url="https://jira.example.com/att/5")

    assert client.download_attachment(attachment) is None
    assert "Failed to download attachment 5" in caplog.text


def test_unknown_attachment(client) -> None:
    client.jira.attachment.side_effect = JIRAError("Attachment not found", status_code=404)
    assert client.download_attachment_by_id(8) is None


def test_get_user_email_is_cached(client) -> None:
    client.jira.user.return_value = MagicMock(emailAddress="jdoe@example.com")

    assert client.get_user_email("jdoe") == "jdoe@example.com"
    assert client.get_user_email("jdoe") == "jdoe@example.com"
    client.jira.user.assert_called_once_with("jdoe")


def test_user_without_email_is_reported(client, summary) -> None:
    client.jira.user.return_value = MagicMock(emailAddress="")

    assert client.get_user_email("svc-build") == "svc-build"
    assert summary.unmapped_users == {"svc-build"}


def test_user_lookup_falls_back_to_key(client) -> None:
    client.jira.user.side_effect = JIRAError("not found", status_code=404)
    response = MagicMock(status_code=200)
    response.json.return_value = {"emailAddress": "legacy@example.com"}
    client.jira._session.get.return_value = response

    assert client.get_user_email("JIRAUSER10100") == "legacy@example.com"


def test_missing_user_falls_back_to_identifier(client, summary) -> None:
    client.jira.user.side_effect = JIRAError("not found", status_code=404)
    client.jira._session.get.return_value = MagicMock(status_code=404)

    assert client.get_user_email("ghost") == "ghost"
    assert summary.unmapped_users == set()


def test_link_types_are_cached(client) -> None:
    first = client.get_link_types()
    second = client.get_link_types()

    assert first is second
    assert [t["name"] for t in first] == ["Blocks", "Relates", "Cloners"]
    client.jira.issue_link_types.assert_called_once()


def test_build_link_action(client) -> None:
    action = client.build_link_action("This issue is blocked by PROJ-2", "PROJ-1", "PROJ-2", "Added")

    assert action.change_type == "Added"
    assert action.value.link_type == "Blocks"
    assert action.value.is_inward_link is True
    assert client.build_link_action("This issue duplicates PROJ-2", "PROJ-1", "PROJ-2", "Added") is None


def test_unreachable_attachment_lookup_degrades(client, caplog) -> None:
    client.jira.attachment.side_effect = requests.ConnectionError("connection reset")
    revision = WiRevision(
        parent_origin_id="PROJ-1",
        index=0,
        time=BASE_TIME,
        fields=[
            WiField(
                reference_name=WiFieldReference.DESCRIPTION,
                value='<img src="https://jira.example.com/secure/attachment/42/pic.png"/>',
            ),
        ],
    )

    assert client.download_attachment_by_id(42) is None
    collapsed = RevisionCollapser(client).collapse([revision])

    assert collapsed[0].attachments == []
    assert "Could not download attachment 42" in caplog.text


def test_unreachable_user_lookup_falls_back_to_identifier(client, summary) -> None:
    client.jira.user.side_effect = requests.ConnectionError("connection reset")

    assert client.get_user_email("jdoe") == "jdoe"
    assert summary.unmapped_users == set()
