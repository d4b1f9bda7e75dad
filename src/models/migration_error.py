"""Exceptions raised by the export pipeline."""


class MigrationError(Exception):
    """An export step cannot continue.

    Raised for unusable configuration files or unreadable item files, i.e.
    conditions that abort the current unit of work rather than a single field.
    """

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ItemLoadError(MigrationError):
    """A serialized item file could not be read or validated."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message)
        self.path = path
