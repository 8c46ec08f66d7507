from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False, default=UserRole.CUSTOMER.value)

    # Seller → Stores they own
    stores = relationship("Store", back_populates="owner", cascade="all, delete")

    reservations = relationship("Reservation", back_populates="user")
