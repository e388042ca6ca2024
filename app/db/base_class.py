import uuid

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def generate_id() -> str:
    """Opaque document id, shaped like the ids the web client already stores."""
    return uuid.uuid4().hex
