from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from app.db.session import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)

    # Ownership (tenant boundary)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    name = Column(String, nullable=False)
    description = Column(String)
    category = Column(String)

    # RELATIONSHIPS -------------------------------------

    owner = relationship("User", back_populates="stores")

    products = relationship("Product", back_populates="store", cascade="all, delete")

    images = relationship("StoreImage", back_populates="store", cascade="all, delete")
