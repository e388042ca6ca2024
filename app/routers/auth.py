import logging

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.core.config import COOKIE_SECURE, SESSION_COOKIE_NAME, SESSION_EXPIRES
from app.core.current_user import get_current_identity, get_current_user
from app.core.deps import get_db
from app.core.firebase import Identity, IdentityProvider, InvalidCredentials, get_identity_provider
from app.models.user import User
from app.schemas.auth import (
    LinkGoogleRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    SessionRequest,
    VerifyResponse,
)
from app.schemas.common import Message
from app.schemas.user import UserRead
from app.services.identity import link_google, resolve_login, unlink_google

logger = logging.getLogger(__name__)

router = APIRouter()


def _verify_id_token(provider: IdentityProvider, id_token: str) -> Identity:
    try:
        return provider.verify_id_token(id_token)
    except InvalidCredentials as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": exc.message, "code": exc.code},
        )


def _set_session_cookie(response: Response, provider: IdentityProvider, id_token: str) -> None:
    try:
        session_cookie = provider.create_session_cookie(id_token, SESSION_EXPIRES)
    except InvalidCredentials as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": exc.message, "code": exc.code},
        )
    response.set_cookie(
        SESSION_COOKIE_NAME,
        session_cookie,
        max_age=int(SESSION_EXPIRES.total_seconds()),
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Account or email already registered"},
    },
)
def register(
    payload: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    identity = _verify_id_token(provider, payload.id_token)

    if db.get(User, identity.uid):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Account already registered",
        )
    if identity.email and db.query(User).filter(User.email == identity.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = User(
        uid=identity.uid,
        email=identity.email,
        display_name=payload.display_name or identity.name,
        photo_url=identity.picture,
        role=payload.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    _set_session_cookie(response, provider, payload.id_token)
    return user


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"description": "Invalid or expired ID token"},
        403: {"description": "Email belongs to an account that has not linked Google"},
    },
)
def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    identity = _verify_id_token(provider, payload.id_token)
    result = resolve_login(db, identity, payload.provider)
    _set_session_cookie(response, provider, payload.id_token)

    if result.linked_account:
        return LoginResponse(
            message="Login successful with linked Google account",
            uid=result.uid,
            linked_account=True,
        )
    return LoginResponse(message="Login successful", uid=result.uid)


@router.post("/session", response_model=Message)
def create_session(
    payload: SessionRequest,
    response: Response,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    _verify_id_token(provider, payload.id_token)
    _set_session_cookie(response, provider, payload.id_token)
    return Message(message="Session created successfully")


@router.post("/logout", response_model=Message)
def logout(
    response: Response,
    session: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    if session:
        try:
            identity = provider.verify_session_cookie(session)
            provider.revoke_refresh_tokens(identity.uid)
        except InvalidCredentials as exc:
            # the cookie is cleared regardless
            logger.info("Logout with unusable session cookie: %s", exc.code)

    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return Message(message="Logged out successfully")


@router.get("/verify", response_model=VerifyResponse)
def verify(
    identity: Identity = Depends(get_current_identity),
    current_user: User = Depends(get_current_user),
):
    return VerifyResponse(uid=current_user.uid, email=current_user.email or identity.email)


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/link-google", response_model=Message)
def link_google_account(
    payload: LinkGoogleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    google = _verify_id_token(provider, payload.google_id_token)
    link_google(db, current_user, google)
    return Message(
        message="Google account linked successfully. You can now login with Google using this email."
    )


@router.delete("/link-google", response_model=Message)
def unlink_google_account(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    unlink_google(db, current_user)
    return Message(message="Google account unlinked successfully and original data restored")
