from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, Integer, String, Boolean, ForeignKey, Enum)
from .mixins import CreatedAtMixin, UpdatedAtMixin

# Fulfillment order; an order only ever moves to the right
ORDER_STATUSES = ("placed", "paid", "inProgress", "outForDelivery", "delivered")


class Order(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "orders"

    #pk, assigned before the payment session is created
    id = Column(String(32), primary_key=True)

    #fk
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="orders")
    restaurant = relationship("Restaurant", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
    )

    delivery_email = Column(String, nullable=False)
    delivery_name = Column(String, nullable=False)
    delivery_address_line1 = Column(String, nullable=False)
    delivery_city = Column(String, nullable=False)

    # Minor currency units, set once by the payment webhook
    total_amount = Column(Integer, nullable=True)
    status = Column(Enum(*ORDER_STATUSES, name="order_status"), default="placed", nullable=False, index=True)
    archived = Column(Boolean, default=False, nullable=False, index=True)

    @property
    def delivery_details(self) -> dict:
        return {
            "email": self.delivery_email,
            "name": self.delivery_name,
            "address_line1": self.delivery_address_line1,
            "city": self.delivery_city,
        }
