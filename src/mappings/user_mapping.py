"""User mapping file support.

The user mapping file translates Jira users (email, or the username when no
email is available) into target-system identities, one ``source=target``
pair per line. Blank lines and ``#`` comments are ignored.
"""

import logging
from pathlib import Path

from src.models.migration_error import MigrationError

logger = logging.getLogger(__name__)


class UserMapping:
    """In-memory user mapping; unmapped users pass through unchanged."""

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        self.mapping: dict[str, str] = dict(mapping or {})

    @classmethod
    def from_file(cls, path: Path | str | None) -> "UserMapping":
        if not path:
            return cls()

        path = Path(path)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError as e:
            msg = f"User mapping file not found: {path}"
            raise MigrationError(msg) from e

        mapping: dict[str, str] = {}
        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            source, separator, target = line.partition("=")
            if not separator or not source.strip():
                logger.warning("Ignoring malformed user mapping line %d in %s: '%s'", number, path, line)
                continue
            mapping[source.strip()] = target.strip()

        logger.debug("Loaded %d user mappings from %s", len(mapping), path)
        return cls(mapping)

    def map(self, user: str | None) -> str | None:
        if not user:
            return user
        return self.mapping.get(user, user)

    def __len__(self) -> int:
        return len(self.mapping)
