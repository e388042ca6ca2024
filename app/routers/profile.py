import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.storage import AttachmentStorage, get_storage
from app.models.user import User
from app.schemas.common import Message
from app.schemas.user import ProfileUpdate, UserRead
from app.services.attachments import avatar_prefix, delete_files, stored_under

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserRead)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("", response_model=UserRead)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for name, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, name, value)
    current_user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.delete("/avatar", response_model=Message)
def delete_avatar(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: AttachmentStorage = Depends(get_storage),
):
    photo_url = current_user.photo_url
    if not photo_url:
        return Message(message="No avatar to delete")

    if stored_under(storage, photo_url, avatar_prefix(current_user.uid)):
        [result] = delete_files(storage, [photo_url])
        if not result.success:
            logger.warning("Avatar of %s left in storage: %s", current_user.uid, result.error)
        message = "Avatar deleted successfully"
    else:
        # Google profile photo, external link or another user's object
        message = "Avatar is not stored here, cleared the reference only"

    current_user.photo_url = None
    current_user.updated_at = datetime.now(timezone.utc)
    db.commit()
    return Message(message=message)
