from datetime import datetime, timezone

# Shared UTC timezone for all revision timestamps
UTC = timezone.utc


def ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC; aware ones are returned unchanged."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)


__all__ = ["UTC", "ensure_utc"]
