"""
Reservation image routing.

A reservation shows its product's image, or the image route of the product's
currently active promotion, so the picture follows promotions that start or
end after the reservation was made.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from app.core.errors import OwnershipMismatch
from app.models.enums import PromotionType
from app.models.promotion import Promotion
from app.models.reservation import Reservation
from app.services.promotion_images import promotion_image_path


def active_promotion(db: Session, product_id: int, now: Optional[datetime] = None) -> Optional[Promotion]:
    """The promotion that owns the product's visuals: flash first, then newest."""
    now = now or datetime.utcnow()
    flash_first = case((Promotion.type == PromotionType.FLASH.value, 0), else_=1)

    return (
        db.query(Promotion)
        .filter(
            Promotion.product_id == product_id,
            Promotion.starts_at <= now,
            or_(Promotion.ends_at.is_(None), Promotion.ends_at > now),
        )
        .order_by(flash_first, Promotion.id.desc())
        .first()
    )


def reservation_image_target(db: Session, reservation_id: int, user_id: int, now: Optional[datetime] = None) -> str:
    """
    URL the reservation image should redirect to.

    The reservation must belong to the caller; someone else's reservation is
    reported the same way as a missing one.
    """
    reservation = (
        db.query(Reservation.id, Reservation.product_id)
        .filter(Reservation.id == reservation_id, Reservation.user_id == user_id)
        .first()
    )
    if not reservation:
        raise OwnershipMismatch(
            f"Reservation {reservation_id} not found for user {user_id}"
        )

    promotion = active_promotion(db, reservation.product_id, now)
    if promotion is not None:
        return promotion_image_path(promotion.id, promotion.type)

    return f"/api/products/{reservation.product_id}/primary-image"
