from sqlalchemy.exc import SQLAlchemyError

from app.db.session import SessionLocal


def get_db():
    """One session per request; a failed statement never leaks into the next one."""
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()
