"""
Ownership validation for image requests.

Every image route goes through one of the ``validate_*`` functions before
touching storage. They confirm the parent chain (image → product → store)
with relational lookups and hand back an immutable ``OwnershipContext``;
downstream code only ever works from that context, never from raw ids taken
off the request.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import EntityNotFound, OwnershipMismatch
from app.models.product import Product
from app.models.product_image import ProductImage
from app.models.store import Store
from app.models.store_image import StoreImage
from app.utils.image_paths import OwnerScope

PRODUCT = "product"
STORE = "store"


@dataclass(frozen=True)
class OwnershipContext:
    entity: str  # product | store
    entity_id: int
    store_id: int
    owner_name: Optional[str] = None
    product_id: Optional[int] = None
    image_id: Optional[int] = None

    @property
    def scope(self) -> OwnerScope:
        return OwnerScope(self.store_id, self.product_id)


def parse_id(raw) -> int:
    """Path ids arrive as strings; anything that is not a positive int is not-found."""
    try:
        value = int(str(raw))
    except (TypeError, ValueError):
        raise EntityNotFound(f"Malformed id {raw!r}")
    if value <= 0:
        raise EntityNotFound(f"Malformed id {raw!r}")
    return value


def validate_product(db: Session, product_id: int, image_id: Optional[int] = None) -> OwnershipContext:
    row = (
        db.query(Product.id, Product.store_id, Store.name)
        .join(Store, Store.id == Product.store_id)
        .filter(Product.id == product_id)
        .first()
    )
    if not row:
        raise EntityNotFound(f"Product {product_id} not found")

    if image_id is not None:
        owner_id = (
            db.query(ProductImage.product_id)
            .filter(ProductImage.id == image_id)
            .scalar()
        )
        if owner_id is None:
            raise EntityNotFound(f"Image {image_id} not found for product {product_id}")
        if owner_id != product_id:
            raise OwnershipMismatch(
                f"Image {image_id} does not belong to product {product_id}"
            )

    return OwnershipContext(
        entity=PRODUCT,
        entity_id=row.id,
        store_id=row.store_id,
        owner_name=row.name,
        product_id=row.id,
        image_id=image_id,
    )


def validate_store(db: Session, store_id: int, image_id: Optional[int] = None) -> OwnershipContext:
    store = db.query(Store.id, Store.name).filter(Store.id == store_id).first()
    if not store:
        raise EntityNotFound(f"Store {store_id} not found")

    if image_id is not None:
        owner_id = (
            db.query(StoreImage.store_id)
            .filter(StoreImage.id == image_id)
            .scalar()
        )
        if owner_id is None:
            raise EntityNotFound(f"Image {image_id} not found for store {store_id}")
        if owner_id != store_id:
            raise OwnershipMismatch(
                f"Image {image_id} does not belong to store {store_id}"
            )

    return OwnershipContext(
        entity=STORE,
        entity_id=store.id,
        store_id=store.id,
        owner_name=store.name,
        image_id=image_id,
    )
