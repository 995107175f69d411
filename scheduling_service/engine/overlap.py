"""Timestamp helpers shared by the availability and conflict services."""

from datetime import datetime, timezone

MESSAGE_TIME_FORMAT = "%Y-%m-%d %H:%M"


def to_utc(value: datetime) -> datetime:
    """Normalise a timestamp to UTC; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_conflict_message(
    resource_name: str,
    event_name: str,
    existing_start: datetime,
    existing_end: datetime,
) -> str:
    return (
        f"Resource '{resource_name}' is already assigned to event '{event_name}' "
        f"from {existing_start.strftime(MESSAGE_TIME_FORMAT)} to {existing_end.strftime(MESSAGE_TIME_FORMAT)}"
    )
