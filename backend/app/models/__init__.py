"""ORM Models: SQLAlchemy declarative models for marketplace entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Payments and reviews reference jobs and users by id only (no relationship loading)

Design Decisions:
    - One file per aggregate for locality
    - All models imported here so metadata is complete before create_all / alembic run
"""

from app.models.user import User  # noqa: F401
from app.models.job import Job, JobSave  # noqa: F401
from app.models.payment import Payment  # noqa: F401
from app.models.review import Review  # noqa: F401
from app.models.notification import Notification  # noqa: F401
