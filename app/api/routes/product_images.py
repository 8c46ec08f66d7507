from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.responses import image_response
from app.core import config
from app.core.dependencies import get_db, get_current_user, get_image_resolver
from app.core.errors import ImageUnavailable
from app.core.redis import get_cache, image_list_key, set_cache
from app.models.enums import ImageVariant
from app.models.product import Product
from app.schemas.image import PrimaryImageOut, ProductImagesOut, ProductRef
from app.services.image_admin import delete_image, require_store_owner, set_primary_image
from app.services.image_resolver import ImageResolver
from app.services.ownership import PRODUCT, OwnershipContext, parse_id, validate_product

router = APIRouter(prefix="/api/products", tags=["Product Images"])


# ---------------------------------------------------------------------
# OWNERSHIP VALIDATION (runs before every handler below)
# ---------------------------------------------------------------------
def validated_product(product_id: str, db: Session = Depends(get_db)) -> OwnershipContext:
    return validate_product(db, parse_id(product_id))


def validated_product_image(
    product_id: str,
    image_id: str,
    db: Session = Depends(get_db),
) -> OwnershipContext:
    return validate_product(db, parse_id(product_id), parse_id(image_id))


def seller_product_image(
    product_id: str,
    image_id: str,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OwnershipContext:
    try:
        ctx = validate_product(db, parse_id(product_id), parse_id(image_id))
    except ImageUnavailable:
        raise HTTPException(status_code=404, detail="Image not found")

    require_store_owner(db, ctx, user)
    return ctx


# =====================================================================
# PRIMARY IMAGE
# =====================================================================
@router.get("/{product_id}/primary-image")
def product_primary_image(
    ctx: OwnershipContext = Depends(validated_product),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    return image_response(resolver.resolve(db, ctx))


# =====================================================================
# THUMBNAIL
# =====================================================================
@router.get("/{product_id}/thumbnail")
def product_thumbnail(
    ctx: OwnershipContext = Depends(validated_product),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    return image_response(resolver.resolve(db, ctx, ImageVariant.THUMBNAIL))


# =====================================================================
# LIST IMAGES (read-only, same answer shape for unknown products)
# =====================================================================
@router.get("/{product_id}/images", response_model=ProductImagesOut)
def list_product_images(
    product_id: str,
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    try:
        ctx = validate_product(db, parse_id(product_id))
    except ImageUnavailable:
        return ProductImagesOut()

    key = image_list_key(PRODUCT, ctx.entity_id)
    cached = get_cache(key)
    if cached:
        return cached

    name = db.query(Product.name).filter(Product.id == ctx.entity_id).scalar()
    payload = ProductImagesOut(
        product=ProductRef(id=ctx.entity_id, name=name, store_id=ctx.store_id),
        images=resolver.describe_images(db, ctx),
    )
    set_cache(key, payload.model_dump(), ttl=config.IMAGE_LIST_CACHE_TTL)
    return payload


# =====================================================================
# ONE SPECIFIC IMAGE (image must belong to the product)
# =====================================================================
@router.get("/{product_id}/image/{image_id}")
def product_image(
    ctx: OwnershipContext = Depends(validated_product_image),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    return image_response(resolver.resolve_specific(db, ctx))


# =====================================================================
# SELLER: SET PRIMARY IMAGE
# =====================================================================
@router.put("/{product_id}/images/{image_id}/primary", response_model=PrimaryImageOut)
def set_product_primary_image(
    ctx: OwnershipContext = Depends(seller_product_image),
    db: Session = Depends(get_db),
):
    image = set_primary_image(db, ctx)

    return PrimaryImageOut(
        message="Primary image updated",
        image_id=image.id,
        is_primary=image.is_primary,
    )


# =====================================================================
# SELLER: DELETE IMAGE
# =====================================================================
@router.delete("/{product_id}/images/{image_id}")
def delete_product_image(
    ctx: OwnershipContext = Depends(seller_product_image),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    removed = delete_image(db, ctx, resolver.guard)

    return {"message": "Product image deleted successfully", "files_removed": removed}
