"""
Seller-side image writes: primary toggling and removal.

Reads tolerate several primaries per owner; writes made through here keep it
to one by clearing the others in the same transaction.
"""
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.core.logging_config import get_logger
from app.core.redis import delete_cache, image_list_key
from app.models.store import Store
from app.services.image_resolver import IMAGE_SOURCES, stored_thumbnail_url
from app.services.ownership import OwnershipContext
from app.services.path_guard import PathSecurityGuard, PathStatus

logger = get_logger().bind(log_type="seller")


def require_store_owner(db: Session, ctx: OwnershipContext, user):
    store = db.query(Store).filter(Store.id == ctx.store_id).first()
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")

    # Ownership check
    if store.user_id != user.id:
        logger.warning(
            f"Ownership denied | user={user.id} | store={ctx.store_id} | {ctx.entity}={ctx.entity_id}"
        )
        raise HTTPException(status_code=403, detail="You do not own this store")
    return store


def _get_image(db: Session, ctx: OwnershipContext):
    image = IMAGE_SOURCES[ctx.entity].lookup_image(db, ctx)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


def set_primary_image(db: Session, ctx: OwnershipContext):
    source = IMAGE_SOURCES[ctx.entity]
    image = _get_image(db, ctx)

    # Clear every other primary for this owner first
    db.query(source.model).filter(
        source.owner_filter(ctx),
        source.model.id != image.id,
    ).update({"is_primary": False}, synchronize_session=False)
    image.is_primary = True
    db.commit()
    db.refresh(image)

    delete_cache(image_list_key(ctx.entity, ctx.entity_id))
    logger.info(f"Primary image set | {ctx.entity}={ctx.entity_id} | image={image.id}")
    return image


def delete_image(db: Session, ctx: OwnershipContext, guard: PathSecurityGuard) -> int:
    """Delete the row and its tenant-scoped files. Returns the number of files removed."""
    image = _get_image(db, ctx)
    scope = ctx.scope

    removed = 0
    candidates = [
        guard.locate(image.image_url, scope),
        guard.locate(stored_thumbnail_url(image), scope, thumbnail=True),
    ]
    for located in candidates:
        # Legacy files may be shared by other rows; only scoped files are removed
        if located is None or located.status == PathStatus.LEGACY:
            continue
        located.path.unlink(missing_ok=True)
        removed += 1

    db.delete(image)
    db.commit()

    delete_cache(image_list_key(ctx.entity, ctx.entity_id))
    logger.info(
        f"Image deleted | {ctx.entity}={ctx.entity_id} | image={ctx.image_id} | files_removed={removed}"
    )
    return removed
