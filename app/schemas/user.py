from datetime import datetime

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel


class UserRead(CamelModel):
    uid: str
    email: EmailStr | None = None
    display_name: str | None = None
    full_name: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")
    role: str

    google_linked: bool = False
    google_email: EmailStr | None = None

    classroom_ids: list[str] = Field(default_factory=list, alias="classrooms")

    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None


class ProfileUpdate(CamelModel):
    display_name: str | None = Field(default=None, max_length=255)
    full_name: str | None = Field(default=None, max_length=255)
    photo_url: str | None = Field(default=None, alias="photoURL")
