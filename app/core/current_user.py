from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import SESSION_COOKIE_NAME
from app.core.deps import get_db
from app.core.firebase import Identity, IdentityProvider, InvalidCredentials, get_identity_provider
from app.models.user import User
from app.services.identity import resolve_canonical_uid


def get_current_identity(
    session: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    if not session:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - No session",
        )
    try:
        return provider.verify_session_cookie(session)
    except InvalidCredentials as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": exc.message, "code": exc.code},
        )


def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> User:
    uid = resolve_canonical_uid(db, identity)
    user = db.get(User, uid)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user
