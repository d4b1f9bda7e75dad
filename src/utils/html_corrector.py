"""Correction of Jira-rendered HTML before it is stored in rich text fields.

Jira renders emoticons and icons as images that only resolve against the
Jira server, uses ``<font>`` tags, and renders images whose attachment is
missing as ``attach/noimage`` placeholders. The helpers here rewrite those
so the markup stands on its own.
"""

import logging
from functools import lru_cache
from importlib import resources
from pathlib import PurePosixPath
from urllib.parse import urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

ORPHAN_ATTACHMENT_HOST = "orphanattachment.internal"

EMOTICONS = {
    "add": "➕",
    "biggrin": "😁",
    "check": "✅",
    "error": "❌",
    "flag_grey": "🏳️",
    "flag": "🚩",
    "forbidden": "⛔",
    "group_16": "👥",
    "help_16": "❓",
    "information": "ℹ️",
    "lightbulb_on": "💡",
    "lightbulb": "⭕",
    "sad": "☹️",
    "smile": "🙂",
    "star_blue": "💙",
    "star_green": "💚",
    "star_red": "❤️",
    "star_yellow": "💛",
    "thumbs_down": "👎",
    "thumbs_up": "👍",
    "tongue": "😛",
    "user_16": "👤",
    "user_bw_16": "👤",
    "warning": "⚠️",
    "wink": "😉",
}
UNKNOWN_EMOTICON = "🚫"

RENDER_ICONS = {"link_attachment_7": "↘️"}
UNKNOWN_RENDER_ICON = "❓"


def correct_rendered_html(html: str | None, include_css: bool = False, origin_id: str | None = None) -> str | None:
    """Run the correction pipeline over one rendered field value."""
    if html is None or not str(html).strip():
        return html

    soup = BeautifulSoup(str(html), "html.parser")
    replace_emoticons(soup)
    replace_render_icons(soup)
    rewrite_orphan_images(soup)
    replace_font_tags(soup)
    corrected = str(soup)

    if include_css:
        css = load_jira_css()
        if not css:
            logger.warning("Could not read css styles for rendered field in %s", origin_id)
        else:
            corrected = f"<style>{css}</style>{corrected}"

    return corrected


def replace_emoticons(soup: BeautifulSoup) -> None:
    for img in _images_with_class(soup, "emoticon"):
        img.replace_with(_glyph(img.get("src"), EMOTICONS, UNKNOWN_EMOTICON))


def replace_render_icons(soup: BeautifulSoup) -> None:
    for img in _images_with_class(soup, "rendericon"):
        img.replace_with(_glyph(img.get("src"), RENDER_ICONS, UNKNOWN_RENDER_ICON))


def rewrite_orphan_images(soup: BeautifulSoup) -> None:
    """Point ``attach/noimage`` placeholders at the orphan attachment host.

    The placeholder keeps the original file name in its ``imagetext``
    attribute (``name.png|thumbnail``).
    """
    for img in soup.find_all("img", attrs={"imagetext": True}):
        src = img.get("src")
        if not src:
            continue
        path = PurePosixPath(urlparse(src).path)
        if path.parent.name != "attach" or path.stem != "noimage":
            continue
        image_name = img["imagetext"].split("|")[0]
        img["src"] = f"http://{ORPHAN_ATTACHMENT_HOST}/{image_name}"


def replace_font_tags(soup: BeautifulSoup) -> None:
    for font in soup.find_all("font"):
        color = font.get("color")
        font.name = "span"
        font.attrs = {"style": f"color: {color};"} if color else {}


@lru_cache(maxsize=1)
def load_jira_css() -> str:
    try:
        return resources.files("src.resources").joinpath("jirastyles.css").read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        return ""


def _images_with_class(soup: BeautifulSoup, fragment: str) -> list:
    return [
        img for img in soup.find_all("img")
        if any(fragment in css_class for css_class in img.get("class") or [])
    ]


def _glyph(src: str | None, glyphs: dict[str, str], default: str) -> str:
    if not src:
        return ""
    return glyphs.get(_src_stem(src), default)


def _src_stem(src: str | None) -> str:
    if not src:
        return ""
    return PurePosixPath(urlparse(src).path).stem
