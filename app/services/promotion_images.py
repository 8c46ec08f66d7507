"""
Promotion image routing.

Promotions carry no image data of their own. Each promotion type gets a
stable URL of its own (/image for regular, /flash-image for flash) that
resolves to the owning product's image.
"""
from sqlalchemy.orm import Session

from app.core.errors import EntityNotFound, OwnershipMismatch
from app.models.enums import PromotionType
from app.models.promotion import Promotion
from app.services.ownership import OwnershipContext, validate_product


def promotion_image_path(promotion_id: int, promotion_type: str) -> str:
    if promotion_type == PromotionType.FLASH.value:
        return f"/api/promotions/{promotion_id}/flash-image"
    return f"/api/promotions/{promotion_id}/image"


def validate_promotion(db: Session, promotion_id: int, expected_type: PromotionType) -> OwnershipContext:
    """Promotion → product → store chain for the route variant that was invoked."""
    promotion = (
        db.query(Promotion.id, Promotion.product_id, Promotion.type)
        .filter(Promotion.id == promotion_id)
        .first()
    )
    if not promotion:
        raise EntityNotFound(f"Promotion {promotion_id} not found")

    if promotion.type != expected_type.value:
        raise OwnershipMismatch(
            f"Promotion {promotion_id} is {promotion.type}, requested as {expected_type.value}"
        )

    return validate_product(db, promotion.product_id)
