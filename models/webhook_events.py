from core.database import Base
from sqlalchemy import (Column, String)
from .mixins import CreatedAtMixin

class ProcessedWebhookEvent(Base, CreatedAtMixin):
    """Payment provider events that were already reconciled."""
    __tablename__ = "processed_webhook_events"

    #pk, the provider's event id
    event_id = Column(String(255), primary_key=True)

    order_id = Column(String(32), nullable=True)
    kind = Column(String(64), nullable=False)
