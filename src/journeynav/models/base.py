"""Base model with common configuration."""

from datetime import datetime, timezone

from pydantic import BaseModel as PydanticBaseModel


def utc_now() -> datetime:
    """Get current UTC datetime (Python 3.12 compatible)."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC; naive datetimes are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds between two timestamps."""
    return int((end - start).total_seconds() * 1000)


class BaseJNModel(PydanticBaseModel):
    """Base model for all JourneyNav models."""

    model_config = {
        # Use enum values instead of names
        "use_enum_values": True,
        # Defaults go through validation so enum defaults become plain values too
        "validate_default": True,
        # Validate on assignment
        "validate_assignment": True,
        # Allow population by field name
        "populate_by_name": True,
    }
