"""Result type returned by field extraction functions."""

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class MappedValue:
    """Outcome of evaluating one mapping rule against one revision.

    ``included`` False means the field is not emitted for the revision;
    ``reason`` then says why (absent source field, unparsable value, ...).
    An included value of None is emitted as an empty string.
    """

    included: bool
    value: Any = None
    reason: str | None = None

    @classmethod
    def of(cls, value: Any) -> "MappedValue":
        return cls(True, value)

    @classmethod
    def skip(cls, reason: str) -> "MappedValue":
        return cls(False, None, reason)


NOT_PRESENT = "source field not present in revision"
