from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import new_id

class MenuItem(Base):
    __tablename__ = "menu_items"

    #pk
    id = Column(String(32), primary_key=True, default=new_id)

    #fk
    restaurant_id = Column(String(32), ForeignKey("restaurants.id"), nullable=False, index=True)

    #relationships
    restaurant = relationship("Restaurant", back_populates="menu_items")

    name = Column(String, nullable=False)
    price = Column(Integer, nullable=False)
