"""
Tiered image resolution, written once and instantiated per entity kind.

Order for a validated entity:
    1. the row flagged is_primary (display_order asc, id desc)
    2. any row, same ordering, when no primary exists
    3. the convention file (e.g. .../products/{id}/main.jpg), only when the
       entity has no rows at all
    4. the shared placeholder

Every candidate goes through PathSecurityGuard before it is trusted.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from app.core.logging_config import get_image_logger
from app.models.enums import ImageVariant
from app.models.product_image import ProductImage
from app.models.store_image import StoreImage
from app.services.ownership import PRODUCT, STORE, OwnershipContext
from app.services.path_guard import LocatedImage, PathSecurityGuard, canonicalize
from app.utils.image_paths import (
    OwnerScope,
    extract_filename,
    format_canonical_path,
    parse_canonical_path,
    thumbnail_filename,
)

logger = get_image_logger()


class Tier(str, Enum):
    PRIMARY = "primary"
    ANY = "any"
    SPECIFIC = "specific"
    DEFAULT = "default"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class Resolution:
    tier: Tier
    image: Optional[LocatedImage] = None
    image_id: Optional[int] = None

    @property
    def found(self) -> bool:
        return self.image is not None


class EntityImageSource:
    """
    What the resolver needs to know about one kind of image owner.

    Subclasses only name the image model and its owner column; lookups and
    path templates are shared.
    """

    model = None
    owner_column = None
    api_prefix = None

    def owner_filter(self, ctx: OwnershipContext):
        return getattr(self.model, self.owner_column) == ctx.entity_id

    def _ordered(self, query):
        # Ties between several primaries: lowest display_order, then newest row
        return query.order_by(self.model.display_order.asc(), self.model.id.desc())

    def lookup_primary(self, db: Session, ctx: OwnershipContext):
        query = db.query(self.model).filter(
            self.owner_filter(ctx), self.model.is_primary.is_(True)
        )
        return self._ordered(query).first()

    def lookup_any(self, db: Session, ctx: OwnershipContext):
        return self._ordered(db.query(self.model).filter(self.owner_filter(ctx))).first()

    def lookup_image(self, db: Session, ctx: OwnershipContext):
        return (
            db.query(self.model)
            .filter(self.owner_filter(ctx), self.model.id == ctx.image_id)
            .first()
        )

    def list_images(self, db: Session, ctx: OwnershipContext):
        return (
            db.query(self.model)
            .filter(self.owner_filter(ctx))
            .order_by(
                self.model.is_primary.desc(),
                self.model.display_order.asc(),
                self.model.id.asc(),
            )
            .all()
        )

    def canonical_scope(self, ctx: OwnershipContext) -> OwnerScope:
        return ctx.scope

    def default_file_path(self, ctx: OwnershipContext, filename: str, thumbnail: bool = False) -> str:
        if thumbnail:
            filename = thumbnail_filename(filename)
        return format_canonical_path(self.canonical_scope(ctx), filename)

    def secure_url(self, ctx: OwnershipContext, image_id: int) -> str:
        return f"{self.api_prefix}/{ctx.entity_id}/image/{image_id}"


class ProductImageSource(EntityImageSource):
    model = ProductImage
    owner_column = "product_id"
    api_prefix = "/api/products"


class StoreImageSource(EntityImageSource):
    model = StoreImage
    owner_column = "store_id"
    api_prefix = "/api/stores"


IMAGE_SOURCES = {
    PRODUCT: ProductImageSource(),
    STORE: StoreImageSource(),
}


def stored_thumbnail_url(row) -> Optional[str]:
    """Thumbnail column, or the thumb- file beside the full image."""
    if row.thumbnail_url:
        return row.thumbnail_url

    # Canonical full image: the thumbnail sits in the same folder
    parsed = parse_canonical_path(row.image_url)
    if parsed is not None:
        return format_canonical_path(parsed.scope, thumbnail_filename(parsed.filename))

    filename = extract_filename(row.image_url)
    return thumbnail_filename(filename) if filename else None


class ImageResolver:
    def __init__(self, guard: PathSecurityGuard, default_filename: str = "main.jpg"):
        self.guard = guard
        self.default_filename = default_filename

    def _source(self, ctx: OwnershipContext) -> EntityImageSource:
        return IMAGE_SOURCES[ctx.entity]

    def _locate_row(self, row, ctx: OwnershipContext, variant: ImageVariant) -> Optional[LocatedImage]:
        thumbnail = variant == ImageVariant.THUMBNAIL
        stored = stored_thumbnail_url(row) if thumbnail else row.image_url
        return self.guard.locate(stored, self._source(ctx).canonical_scope(ctx), thumbnail=thumbnail)

    def _miss(self, ctx: OwnershipContext, variant: ImageVariant, reason: str) -> Resolution:
        logger.error(
            f"TOTAL MISS | {ctx.entity}={ctx.entity_id} | store={ctx.store_id} "
            f"| variant={variant.value} | {reason}"
        )
        return Resolution(Tier.PLACEHOLDER)

    def resolve(self, db: Session, ctx: OwnershipContext, variant: ImageVariant = ImageVariant.FULL) -> Resolution:
        source = self._source(ctx)

        tier = Tier.PRIMARY
        row = source.lookup_primary(db, ctx)
        if row is None:
            tier = Tier.ANY
            row = source.lookup_any(db, ctx)

        if row is not None:
            located = self._locate_row(row, ctx, variant)
            if located is None:
                return self._miss(ctx, variant, f"row {row.id} ({tier.value}) has no servable file")
            logger.info(
                f"{tier.value.upper()} | {ctx.entity}={ctx.entity_id} | image={row.id} "
                f"| variant={variant.value} | {located.url} ({located.status.value})"
            )
            return Resolution(tier, located, row.id)

        url = source.default_file_path(
            ctx, self.default_filename, thumbnail=variant == ImageVariant.THUMBNAIL
        )
        located = self.guard.locate(url, source.canonical_scope(ctx))
        if located is not None:
            logger.info(
                f"DEFAULT | {ctx.entity}={ctx.entity_id} | variant={variant.value} | {located.url}"
            )
            return Resolution(Tier.DEFAULT, located)

        return self._miss(ctx, variant, "no image rows and no convention file")

    def resolve_specific(self, db: Session, ctx: OwnershipContext, variant: ImageVariant = ImageVariant.FULL) -> Resolution:
        row = self._source(ctx).lookup_image(db, ctx)
        if row is None:
            return self._miss(ctx, variant, f"image {ctx.image_id} vanished after validation")

        located = self._locate_row(row, ctx, variant)
        if located is None:
            return self._miss(ctx, variant, f"image {row.id} has no servable file")
        logger.info(
            f"SPECIFIC | {ctx.entity}={ctx.entity_id} | image={row.id} | {located.url} ({located.status.value})"
        )
        return Resolution(Tier.SPECIFIC, located, row.id)

    def describe_images(self, db: Session, ctx: OwnershipContext) -> list[dict]:
        """Listing payload: canonicalized URLs only, no filesystem access."""
        source = self._source(ctx)
        scope = source.canonical_scope(ctx)
        images = []
        for row in source.list_images(db, ctx):
            images.append({
                "id": row.id,
                "image_url": canonicalize(row.image_url, scope),
                "thumbnail_url": canonicalize(stored_thumbnail_url(row), scope, thumbnail=True),
                "is_primary": bool(row.is_primary),
                "display_order": row.display_order,
                "secure_url": source.secure_url(ctx, row.id),
            })
        return images
