from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.db.session import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    # Owning tenant, immutable after creation
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(String)
    category = Column(String, nullable=False, default="")

    # Pricing fields
    price = Column(Float, nullable=False, default=0.0)
    discounted_price = Column(Float, nullable=True)
    stock = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # RELATIONSHIPS -------------------------------------

    store = relationship("Store", back_populates="products")

    images = relationship("ProductImage", back_populates="product", cascade="all, delete")

    promotions = relationship("Promotion", back_populates="product", cascade="all, delete")
