from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.responses import image_response
from app.core.dependencies import get_db, get_image_resolver
from app.models.enums import PromotionType
from app.services.image_resolver import ImageResolver
from app.services.ownership import parse_id
from app.services.promotion_images import validate_promotion

router = APIRouter(prefix="/api/promotions", tags=["Promotion Images"])


# =====================================================================
# REGULAR PROMOTION IMAGE
# =====================================================================
@router.get("/{promotion_id}/image")
def regular_promotion_image(
    promotion_id: str,
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    ctx = validate_promotion(db, parse_id(promotion_id), PromotionType.REGULAR)
    return image_response(resolver.resolve(db, ctx))


# =====================================================================
# FLASH PROMOTION IMAGE
# =====================================================================
@router.get("/{promotion_id}/flash-image")
def flash_promotion_image(
    promotion_id: str,
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    ctx = validate_promotion(db, parse_id(promotion_id), PromotionType.FLASH)
    return image_response(resolver.resolve(db, ctx))
