"""Firebase Admin access: app initialisation and the identity provider.

Everything that talks to Firebase Auth goes through ``IdentityProvider`` so
route handlers only ever see ``Identity`` objects and ``InvalidCredentials``.
"""
import logging
from datetime import timedelta
from functools import lru_cache

import firebase_admin
from firebase_admin import auth, credentials
from pydantic import BaseModel

from app.core.config import (
    FIREBASE_CREDENTIALS,
    FIREBASE_PROJECT_ID,
    FIREBASE_STORAGE_BUCKET,
    SESSION_EXPIRES,
)

logger = logging.getLogger(__name__)

GOOGLE_PROVIDER = "google.com"

# user-facing messages for the auth error codes we surface
SESSION_EXPIRED = "Session expired! Please log in again!"
TOKEN_EXPIRED = "Authentication token expired!"
USER_DISABLED = "This account has been disabled!"
INVALID_CREDENTIAL = "Invalid credentials provided!"

AUTH_ERROR_MESSAGES = {
    "auth/session-cookie-expired": SESSION_EXPIRED,
    "auth/session-cookie-revoked": SESSION_EXPIRED,
    "auth/id-token-expired": TOKEN_EXPIRED,
    "auth/id-token-revoked": TOKEN_EXPIRED,
    "auth/user-disabled": USER_DISABLED,
    "auth/invalid-credential": INVALID_CREDENTIAL,
}


def auth_error_message(code: str) -> str:
    return AUTH_ERROR_MESSAGES.get(code, INVALID_CREDENTIAL)


class InvalidCredentials(Exception):
    def __init__(self, code: str = "auth/invalid-credential"):
        super().__init__(code)
        self.code = code

    @property
    def message(self) -> str:
        return auth_error_message(self.code)


class Identity(BaseModel):
    """The claims we use out of a verified ID token or session cookie."""

    uid: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    sign_in_provider: str | None = None

    @property
    def is_google(self) -> bool:
        return self.sign_in_provider == GOOGLE_PROVIDER

    @classmethod
    def from_claims(cls, claims: dict) -> "Identity":
        firebase_claims = claims.get("firebase") or {}
        return cls(
            uid=claims["uid"],
            email=claims.get("email"),
            name=claims.get("name"),
            picture=claims.get("picture"),
            sign_in_provider=firebase_claims.get("sign_in_provider"),
        )


@lru_cache
def get_firebase_app() -> firebase_admin.App:
    options = {}
    if FIREBASE_PROJECT_ID:
        options["projectId"] = FIREBASE_PROJECT_ID
    if FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = FIREBASE_STORAGE_BUCKET

    if FIREBASE_CREDENTIALS:
        cred = credentials.Certificate(FIREBASE_CREDENTIALS)
    else:
        cred = credentials.ApplicationDefault()

    logger.info("Initialising Firebase app (project=%s)", FIREBASE_PROJECT_ID)
    return firebase_admin.initialize_app(cred, options or None)


def _error_code(exc: Exception) -> str:
    # subclasses first: Expired*/Revoked* derive from the Invalid* errors
    if isinstance(exc, auth.ExpiredSessionCookieError):
        return "auth/session-cookie-expired"
    if isinstance(exc, auth.RevokedSessionCookieError):
        return "auth/session-cookie-revoked"
    if isinstance(exc, auth.ExpiredIdTokenError):
        return "auth/id-token-expired"
    if isinstance(exc, auth.RevokedIdTokenError):
        return "auth/id-token-revoked"
    if isinstance(exc, auth.UserDisabledError):
        return "auth/user-disabled"
    return "auth/invalid-credential"


_AUTH_ERRORS = (
    auth.InvalidIdTokenError,
    auth.InvalidSessionCookieError,
    auth.UserDisabledError,
    auth.CertificateFetchError,
    ValueError,
)


class IdentityProvider:
    """Firebase Auth backed verification of ID tokens and session cookies."""

    def __init__(self, app: firebase_admin.App | None = None):
        self._app = app

    @property
    def app(self) -> firebase_admin.App:
        if self._app is None:
            self._app = get_firebase_app()
        return self._app

    def verify_id_token(self, id_token: str) -> Identity:
        try:
            claims = auth.verify_id_token(id_token, app=self.app)
        except _AUTH_ERRORS as exc:
            logger.info("ID token rejected: %s", exc)
            raise InvalidCredentials(_error_code(exc)) from exc
        return Identity.from_claims(claims)

    def create_session_cookie(
        self, id_token: str, expires_in: timedelta = SESSION_EXPIRES
    ) -> str:
        try:
            return auth.create_session_cookie(id_token, expires_in=expires_in, app=self.app)
        except (auth.InvalidIdTokenError, ValueError) as exc:
            raise InvalidCredentials(_error_code(exc)) from exc

    def verify_session_cookie(self, session_cookie: str) -> Identity:
        try:
            claims = auth.verify_session_cookie(
                session_cookie, check_revoked=True, app=self.app
            )
        except _AUTH_ERRORS as exc:
            logger.info("Session cookie rejected: %s", exc)
            raise InvalidCredentials(_error_code(exc)) from exc
        return Identity.from_claims(claims)

    def revoke_refresh_tokens(self, uid: str) -> None:
        auth.revoke_refresh_tokens(uid, app=self.app)


@lru_cache
def get_identity_provider() -> IdentityProvider:
    return IdentityProvider()
