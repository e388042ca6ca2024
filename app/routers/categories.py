from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.models.category import Category
from app.models.task import Task
from app.models.user import User
from app.schemas.category import (
    CategoryCreate,
    CategoryCreated,
    CategoryDeleted,
    CategoryList,
    CategoryRead,
)

router = APIRouter()


@router.get("", response_model=CategoryList)
def list_categories(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    categories = (
        db.query(Category)
        .filter(Category.owner_uid == me.uid)
        .order_by(Category.category_name.asc())
        .all()
    )
    return CategoryList(
        count=len(categories),
        categories=[CategoryRead.model_validate(c) for c in categories],
    )


@router.post("", response_model=CategoryCreated)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    name = payload.category_name.strip()
    existing = (
        db.query(Category)
        .filter(Category.owner_uid == me.uid, Category.category_name == name)
        .first()
    )
    if existing:
        existing.updated_at = datetime.now(timezone.utc)
        db.commit()
        return CategoryCreated(tag_name=name)

    db.add(Category(owner_uid=me.uid, category_name=name))
    try:
        db.commit()
    except IntegrityError:
        # created concurrently, same outcome
        db.rollback()
    return CategoryCreated(tag_name=name)


@router.delete("/{category_name}", response_model=CategoryDeleted)
def delete_category(
    category_name: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    updated = (
        db.query(Task)
        .filter(Task.owner_uid == me.uid, Task.category == category_name)
        .update({Task.category: None}, synchronize_session=False)
    )
    db.query(Category).filter(
        Category.owner_uid == me.uid, Category.category_name == category_name
    ).delete(synchronize_session=False)
    db.commit()
    return CategoryDeleted(tasks_updated=updated)
