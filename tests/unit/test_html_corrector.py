"""Tests for the rendered HTML corrections."""

import pytest
from bs4 import BeautifulSoup

from src.utils.html_corrector import (
    ORPHAN_ATTACHMENT_HOST,
    correct_rendered_html,
    load_jira_css,
)

pytestmark = pytest.mark.unit


def test_emoticons_become_glyphs() -> None:
    html = (
        '<p><img class="emoticon" src="https://jira.example.com/images/icons/emoticons/smile.png" '
        'alt="(smile)"/> thanks</p>'
    )
    assert correct_rendered_html(html) == "<p>🙂 thanks</p>"


def test_unknown_emoticon() -> None:
    html = '<p><img class="emoticon" src="/images/icons/emoticons/facepalm.png"/></p>'
    assert correct_rendered_html(html) == "<p>🚫</p>"


def test_render_icons() -> None:
    html = '<a href="x"><img class="rendericon" src="/images/icons/link_attachment_7.gif"/>doc.pdf</a>'
    assert correct_rendered_html(html) == '<a href="x">↘️doc.pdf</a>'


def test_missing_image_points_at_orphan_host() -> None:
    html = (
        '<p><img src="https://jira.example.com/images/icons/attach/noimage.png" '
        'imagetext="diagram.png|thumbnail"/></p>'
    )
    soup = BeautifulSoup(correct_rendered_html(html), "html.parser")
    assert soup.img["src"] == f"http://{ORPHAN_ATTACHMENT_HOST}/diagram.png"


def test_regular_images_are_kept() -> None:
    html = '<p><img src="https://jira.example.com/secure/attachment/42/pic.png"/></p>'
    soup = BeautifulSoup(correct_rendered_html(html), "html.parser")
    assert soup.img["src"] == "https://jira.example.com/secure/attachment/42/pic.png"


def test_font_tags_become_spans() -> None:
    assert correct_rendered_html('<font color="#ff0000">red</font>') == (
        '<span style="color: #ff0000;">red</span>'
    )
    assert correct_rendered_html("<font>plain</font>") == "<span>plain</span>"


def test_blank_values_are_unchanged() -> None:
    assert correct_rendered_html(None) is None
    assert correct_rendered_html("") == ""
    assert correct_rendered_html("   ") == "   "


def test_css_prefix() -> None:
    corrected = correct_rendered_html("<p>x</p>", include_css=True)
    assert corrected.startswith("<style>")
    assert corrected.endswith("</style><p>x</p>")
    assert "confluenceTable" in load_jira_css()
