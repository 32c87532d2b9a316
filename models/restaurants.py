from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin, new_id

class Restaurant(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "restaurants"

    #pk
    id = Column(String(32), primary_key=True, default=new_id)

    #fk
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="restaurants")
    menu_items = relationship("MenuItem", back_populates="restaurant", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="restaurant")

    name = Column(String, nullable=False)
    city = Column(String)
    # Minor currency units
    delivery_price = Column(Integer, nullable=False, default=0)
