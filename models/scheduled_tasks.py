from core.database import Base
from sqlalchemy import (Column, Integer, String, DateTime, ForeignKey)
from .mixins import CreatedAtMixin

class ScheduledTask(Base, CreatedAtMixin):
    """
    Pending retirement of one order.

    Armed when an order is delivered and swept by the archival scheduler.
    Deleting the row cancels the action. One task per order.
    """
    __tablename__ = "scheduled_tasks"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)

    action = Column(String(16), nullable=False)
    due_at = Column(DateTime, nullable=False, index=True)
