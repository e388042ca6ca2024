from datetime import datetime, timezone

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Message(BaseModel):
    success: bool = True
    message: str


def to_utc(value: datetime | None) -> datetime | None:
    """Store deadlines in UTC; SQLite keeps the wall time and drops the offset."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
