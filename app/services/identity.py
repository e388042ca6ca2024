"""Which user row an authenticated Firebase identity maps to.

Google identities can be linked onto an existing email/password account, in
which case the Google uid is not a users row of its own and every request
made with it resolves to the linked account's uid.
"""
import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.firebase import Identity
from app.models.user import User

logger = logging.getLogger(__name__)

EMAIL_EXISTS_NOT_LINKED = "EMAIL_EXISTS_NOT_LINKED"


class LoginResult(BaseModel):
    uid: str
    linked_account: bool = False
    created: bool = False


def _linked_account(db: Session, google_uid: str) -> User | None:
    return (
        db.query(User)
        .filter(User.google_linked.is_(True), User.google_uid == google_uid)
        .first()
    )


def resolve_canonical_uid(db: Session, identity: Identity) -> str:
    if db.get(User, identity.uid) is not None:
        return identity.uid
    linked = _linked_account(db, identity.uid)
    if linked is not None:
        return linked.uid
    return identity.uid


def _display_name_for(identity: Identity) -> str:
    if identity.name:
        return identity.name
    if identity.email:
        return identity.email.split("@")[0]
    return "User"


def resolve_login(db: Session, identity: Identity, provider: str | None = None) -> LoginResult:
    """Decide which account a login is for, creating it on first social login.

    Commits the session.
    """
    now = datetime.now(timezone.utc)
    is_google = identity.is_google or provider == "google"

    user = db.get(User, identity.uid)
    if user is not None:
        user.last_login = now
        db.commit()
        return LoginResult(uid=user.uid)

    if is_google and identity.email:
        linked = _linked_account(db, identity.uid)
        if linked is not None and linked.email == identity.email:
            logger.info("Google uid %s resolved to linked account %s", identity.uid, linked.uid)
            linked.last_login = now
            db.commit()
            return LoginResult(uid=linked.uid, linked_account=True)

        email_taken = db.query(User).filter(User.email == identity.email).first()
        if email_taken is not None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": EMAIL_EXISTS_NOT_LINKED,
                    "message": (
                        "An account with this email already exists. Please login with "
                        "email/password and link your Google account first."
                    ),
                    "existingEmail": identity.email,
                },
            )

        user = User(
            uid=identity.uid,
            email=identity.email,
            display_name=_display_name_for(identity),
            photo_url=identity.picture,
            role="student",
            google_linked=True,
            google_email=identity.email,
            google_uid=identity.uid,
            last_login=now,
        )
    else:
        # email/password account that never went through registration
        user = User(
            uid=identity.uid,
            email=identity.email,
            display_name=_display_name_for(identity),
            role="user",
            last_login=now,
        )

    db.add(user)
    db.commit()
    logger.info("Created user %s on first login (role=%s)", user.uid, user.role)
    return LoginResult(uid=user.uid, created=True)


def link_google(db: Session, user: User, google: Identity) -> User:
    if not google.is_google:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid provider. Must be Google.",
        )
    if google.email != user.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Email mismatch",
                "message": "The Google account email must match your current account email.",
            },
        )
    if user.google_linked:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google account is already linked",
        )

    other = _linked_account(db, google.uid)
    if (other is not None and other.uid != user.uid) or (
        google.uid != user.uid and db.get(User, google.uid) is not None
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This Google account is already used by another account",
        )

    user.original_display_name = user.display_name
    user.original_photo_url = user.photo_url

    user.google_linked = True
    user.google_email = google.email
    user.google_uid = google.uid
    user.display_name = google.name or user.display_name
    user.photo_url = google.picture or user.photo_url
    user.updated_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(user)
    logger.info("Linked Google uid %s to account %s", google.uid, user.uid)
    return user


def unlink_google(db: Session, user: User) -> User:
    if not user.google_linked:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google account is not linked",
        )
    if user.google_uid == user.uid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google is the primary sign-in for this account and cannot be unlinked",
        )

    user.google_linked = False
    user.google_email = None
    user.google_uid = None
    user.display_name = user.original_display_name
    user.photo_url = user.original_photo_url
    user.original_display_name = None
    user.original_photo_url = None
    user.updated_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(user)
    logger.info("Unlinked Google from account %s", user.uid)
    return user
