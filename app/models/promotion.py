from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.db.session import Base


class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    type = Column(String, nullable=False)  # flash | regular
    discount_percentage = Column(Integer, nullable=False, default=0)

    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=True)  # NULL = open-ended

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    product = relationship("Product", back_populates="promotions")
