from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey)
from sqlalchemy.orm import relationship

class OrderItem(Base):
    """One cart line. ``name`` is the menu item name at checkout time."""
    __tablename__ = "order_items"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    order = relationship("Order", back_populates="items")

    # Not a foreign key: the menu may change after the order is placed
    menu_item_id = Column(String(32), nullable=False)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)
