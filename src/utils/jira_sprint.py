"""Parsing of serialized GreenHopper sprint objects.

Some Jira versions return the sprint field as the ``toString()`` of the
sprint objects instead of their names, e.g.::

    com.atlassian.greenhopper.service.sprint.Sprint@4a1c[id=3589,rapidViewId=137,
    state=CLOSED,name=Anonymous Sprint 199,startDate=2024-11-25T06:52:00.000+02:00,...]
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

SPRINT_PREFIX = "com.atlassian.greenhopper.service.sprint.Sprint@"

_RECORD_SEPARATOR = "];"
_KEY_VALUE = re.compile(r"(\w+)=(.*?)(?=,\w+=|\])", re.DOTALL)
_NUMBER = re.compile(r"\d+")
_NULL = "<null>"

_INT_KEYS = {
    "id": "id",
    "rapidViewId": "rapid_view_id",
    "sequence": "sequence",
    "incompleteIssuesDestinationId": "incomplete_issues_destination_id",
}
_DATE_KEYS = {
    "startDate": "start_date",
    "endDate": "end_date",
    "completeDate": "complete_date",
    "activatedDate": "activated_date",
}
_BOOL_KEYS = {"synced": "synced", "autoStartStop": "auto_start_stop"}
_TEXT_KEYS = {"state": "state", "name": "name", "goal": "goal"}


@dataclass(slots=True)
class JiraSprint:
    """A sprint record decoded from its serialized form."""

    id: int | None = None
    rapid_view_id: int | None = None
    state: str | None = None
    name: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    complete_date: datetime | None = None
    activated_date: datetime | None = None
    sequence: int | None = None
    goal: str | None = None
    synced: bool | None = None
    auto_start_stop: bool | None = None
    incomplete_issues_destination_id: int | None = None

    @property
    def sprint_number(self) -> int:
        """Largest integer appearing in the sprint name, 0 if none."""
        if not self.name:
            return 0
        return max((int(n) for n in _NUMBER.findall(self.name)), default=0)

    @classmethod
    def parse(cls, record: str) -> "JiraSprint | None":
        if not record.endswith("]"):
            record += "]"
        pairs = _KEY_VALUE.findall(record)
        if not pairs:
            return None

        values: dict[str, Any] = {}
        for key, raw in pairs:
            attr, value = _convert(key, raw)
            if attr is not None:
                values[attr] = value
        return cls(**values)

    @classmethod
    def parse_list(cls, value: str) -> list["JiraSprint"]:
        sprints = []
        for record in value.split(_RECORD_SEPARATOR):
            if not record.strip():
                continue
            sprint = cls.parse(record)
            if sprint is not None:
                sprints.append(sprint)
        return sprints


def _convert(key: str, raw: str) -> tuple[str | None, Any]:
    value = None if raw == _NULL else raw

    if key in _TEXT_KEYS:
        return _TEXT_KEYS[key], value
    if key in _INT_KEYS:
        return _INT_KEYS[key], _parse(int, key, value)
    if key in _DATE_KEYS:
        return _DATE_KEYS[key], _parse(datetime.fromisoformat, key, value)
    if key in _BOOL_KEYS:
        return _BOOL_KEYS[key], None if value is None else value.lower() == "true"

    logger.debug("Ignoring unknown sprint property '%s'", key)
    return None, None


def _parse(func: Any, key: str, value: str | None) -> Any:
    if value is None or value == "":
        return None
    try:
        return func(value)
    except ValueError:
        logger.warning("Could not parse sprint property %s='%s'", key, value)
        return None
