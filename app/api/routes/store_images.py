from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.responses import image_response
from app.core import config
from app.core.dependencies import get_db, get_current_user, get_image_resolver
from app.core.errors import ImageUnavailable
from app.core.redis import get_cache, image_list_key, set_cache
from app.models.enums import ImageVariant
from app.schemas.image import PrimaryImageOut, StoreImagesOut, StoreRef
from app.services.image_admin import delete_image, require_store_owner, set_primary_image
from app.services.image_resolver import ImageResolver
from app.services.ownership import STORE, OwnershipContext, parse_id, validate_store

router = APIRouter(prefix="/api/stores", tags=["Store Images"])


# ---------------------------------------------------------------------
# OWNERSHIP VALIDATION
# ---------------------------------------------------------------------
def validated_store(store_id: str, db: Session = Depends(get_db)) -> OwnershipContext:
    return validate_store(db, parse_id(store_id))


def validated_store_image(
    store_id: str,
    image_id: str,
    db: Session = Depends(get_db),
) -> OwnershipContext:
    return validate_store(db, parse_id(store_id), parse_id(image_id))


def seller_store_image(
    store_id: str,
    image_id: str,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OwnershipContext:
    try:
        ctx = validate_store(db, parse_id(store_id), parse_id(image_id))
    except ImageUnavailable:
        raise HTTPException(status_code=404, detail="Image not found")

    require_store_owner(db, ctx, user)
    return ctx


# =====================================================================
# PRIMARY IMAGE / THUMBNAIL
# =====================================================================
@router.get("/{store_id}/primary-image")
def store_primary_image(
    ctx: OwnershipContext = Depends(validated_store),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    return image_response(resolver.resolve(db, ctx))


@router.get("/{store_id}/thumbnail")
def store_thumbnail(
    ctx: OwnershipContext = Depends(validated_store),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    return image_response(resolver.resolve(db, ctx, ImageVariant.THUMBNAIL))


# =====================================================================
# LIST IMAGES
# =====================================================================
@router.get("/{store_id}/images", response_model=StoreImagesOut)
def list_store_images(
    store_id: str,
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    try:
        ctx = validate_store(db, parse_id(store_id))
    except ImageUnavailable:
        return StoreImagesOut()

    key = image_list_key(STORE, ctx.entity_id)
    cached = get_cache(key)
    if cached:
        return cached

    payload = StoreImagesOut(
        store=StoreRef(id=ctx.entity_id, name=ctx.owner_name),
        images=resolver.describe_images(db, ctx),
    )
    set_cache(key, payload.model_dump(), ttl=config.IMAGE_LIST_CACHE_TTL)
    return payload


# =====================================================================
# ONE SPECIFIC IMAGE
# =====================================================================
@router.get("/{store_id}/image/{image_id}")
def store_image(
    ctx: OwnershipContext = Depends(validated_store_image),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    return image_response(resolver.resolve_specific(db, ctx))


# =====================================================================
# SELLER: SET PRIMARY / DELETE
# =====================================================================
@router.put("/{store_id}/images/{image_id}/primary", response_model=PrimaryImageOut)
def set_store_primary_image(
    ctx: OwnershipContext = Depends(seller_store_image),
    db: Session = Depends(get_db),
):
    image = set_primary_image(db, ctx)

    return PrimaryImageOut(
        message="Primary image updated",
        image_id=image.id,
        is_primary=image.is_primary,
    )


@router.delete("/{store_id}/images/{image_id}")
def delete_store_image(
    ctx: OwnershipContext = Depends(seller_store_image),
    db: Session = Depends(get_db),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    removed = delete_image(db, ctx, resolver.guard)

    return {"message": "Store image deleted successfully", "files_removed": removed}
