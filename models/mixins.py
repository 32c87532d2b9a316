import uuid
from sqlalchemy import Column, DateTime
from utils.clock import utcnow


def new_id() -> str:
    return uuid.uuid4().hex


class CreatedAtMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False)
class UpdatedAtMixin:
    # Written explicitly on every status change; onupdate covers the rest
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False, index=True)
