from core.database import Base
from sqlalchemy import (Column, String)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, new_id

class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    #pk
    id = Column(String(32), primary_key=True, default=new_id)

    #relationships
    orders = relationship("Order", back_populates="user")
    restaurants = relationship("Restaurant", back_populates="user")

    # Subject claim of the identity provider token, immutable
    auth_sub = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=False)
    name = Column(String, nullable=False)
    address_line1 = Column(String)
    city = Column(String)
    country = Column(String)
