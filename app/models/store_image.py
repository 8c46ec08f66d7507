from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from app.db.session import Base


class StoreImage(Base):
    __tablename__ = "store_images"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)

    image_url = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=False, default="")

    is_primary = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    store = relationship("Store", back_populates="images")

    __table_args__ = (
        Index("ix_store_images_store_id_primary", "store_id", "is_primary"),
    )
