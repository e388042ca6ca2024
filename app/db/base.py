from app.db.base_class import Base  # noqa: F401

# import models so SQLAlchemy registers them on Base.metadata
from app.models import category, classroom, classroom_member, classroom_task, task, user  # noqa: F401,E402
