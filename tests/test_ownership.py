import pytest

from app.core.errors import EntityNotFound, ImageUnavailable, OwnershipMismatch
from app.services.ownership import PRODUCT, STORE, parse_id, validate_product, validate_store
from app.utils.image_paths import OwnerScope

from conftest import add_product_image, add_store_image


@pytest.mark.parametrize("raw", ["abc", "1.5", "", "-3", "0", None])
def test_parse_id_rejects_malformed(raw):
    with pytest.raises(EntityNotFound):
        parse_id(raw)


def test_parse_id_accepts_digits():
    assert parse_id("19") == 19


def test_validate_product_builds_context(db, marketplace):
    ctx = validate_product(db, 19)

    assert ctx.entity == PRODUCT
    assert ctx.entity_id == 19
    assert ctx.store_id == 9
    assert ctx.owner_name == "Corner Shop"
    assert ctx.scope == OwnerScope(9, 19)


def test_validate_product_unknown(db, marketplace):
    with pytest.raises(EntityNotFound):
        validate_product(db, 404)


def test_validate_product_with_own_image(db, marketplace):
    image = add_product_image(db, 19, "/uploads/stores/9/products/19/a.jpg")

    ctx = validate_product(db, 19, image.id)

    assert ctx.image_id == image.id


def test_validate_product_with_foreign_image(db, marketplace):
    foreign = add_product_image(db, 20, "/uploads/stores/10/products/20/x.jpg")

    with pytest.raises(OwnershipMismatch):
        validate_product(db, 19, foreign.id)


def test_validate_product_with_unknown_image(db, marketplace):
    with pytest.raises(EntityNotFound):
        validate_product(db, 19, 999)


def test_validate_store(db, marketplace):
    ctx = validate_store(db, 9)

    assert ctx.entity == STORE
    assert ctx.store_id == 9
    assert ctx.product_id is None
    assert ctx.scope == OwnerScope(9)


def test_validate_store_with_foreign_image(db, marketplace):
    foreign = add_store_image(db, 10, "/uploads/stores/10/banner.jpg")

    with pytest.raises(OwnershipMismatch):
        validate_store(db, 9, foreign.id)


def test_failures_share_one_base_class():
    assert issubclass(EntityNotFound, ImageUnavailable)
    assert issubclass(OwnershipMismatch, ImageUnavailable)
    assert OwnershipMismatch("x").log_level == "WARNING"
