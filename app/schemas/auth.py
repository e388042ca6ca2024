from typing import Literal

from pydantic import AliasChoices, BaseModel, EmailStr, Field

from app.schemas.common import CamelModel


class LoginRequest(BaseModel):
    id_token: str = Field(min_length=1, validation_alias=AliasChoices("idToken", "token"))
    provider: str | None = None


class SessionRequest(BaseModel):
    id_token: str = Field(min_length=1, validation_alias="idToken")


class RegisterRequest(BaseModel):
    id_token: str = Field(min_length=1, validation_alias="idToken")
    display_name: str | None = Field(default=None, max_length=255, validation_alias="displayName")
    role: Literal["student", "teacher"] = "student"


class LinkGoogleRequest(BaseModel):
    google_id_token: str = Field(
        min_length=1, validation_alias=AliasChoices("googleIdToken", "idToken")
    )


class LoginResponse(CamelModel):
    success: bool = True
    message: str
    uid: str
    linked_account: bool = False


class VerifyResponse(CamelModel):
    success: bool = True
    uid: str
    email: EmailStr | None = None
