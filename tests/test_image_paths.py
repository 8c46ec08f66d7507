import pytest

from app.services.path_guard import canonicalize
from app.utils.image_paths import (
    OwnerScope,
    extract_filename,
    format_canonical_path,
    parse_canonical_path,
    thumbnail_filename,
)

PRODUCT_19 = OwnerScope(store_id=9, product_id=19)
STORE_9 = OwnerScope(store_id=9)


def test_parse_product_path():
    parsed = parse_canonical_path("/uploads/stores/9/products/19/a.jpg")

    assert parsed.store_id == 9
    assert parsed.product_id == 19
    assert parsed.filename == "a.jpg"
    assert parsed.scope == PRODUCT_19


def test_parse_store_path():
    parsed = parse_canonical_path("/uploads/stores/9/banner.png")

    assert parsed.scope == STORE_9
    assert parsed.url == "/uploads/stores/9/banner.png"


@pytest.mark.parametrize("url", [
    None,
    "",
    "a.jpg",
    "uploads/stores/9/a.jpg",
    "/uploads/a.jpg",
    "/uploads/stores/x/a.jpg",
    "/uploads/stores/9/products/19/",
    "/uploads/stores/9/products/19/sub/a.jpg",
    "https://cdn.example.com/uploads/stores/9/a.jpg",
])
def test_parse_rejects_non_canonical(url):
    assert parse_canonical_path(url) is None


def test_format_refuses_unsafe_filename():
    with pytest.raises(ValueError):
        format_canonical_path(PRODUCT_19, "..")
    with pytest.raises(ValueError):
        format_canonical_path(PRODUCT_19, "a/b.jpg")


def test_extract_filename_drops_query_and_directories():
    assert extract_filename("a.jpg") == "a.jpg"
    assert extract_filename("/old/place/a.jpg?v=3#x") == "a.jpg"
    assert extract_filename("https://cdn.example.com/x/b.png") == "b.png"
    assert extract_filename("/uploads/..") is None
    assert extract_filename("") is None


def test_thumbnail_prefix_applied_once():
    assert thumbnail_filename("a.jpg") == "thumb-a.jpg"
    assert thumbnail_filename("thumb-a.jpg") == "thumb-a.jpg"


def test_canonicalize_rewrites_drifted_url():
    assert canonicalize("a.jpg", PRODUCT_19) == "/uploads/stores/9/products/19/a.jpg"
    assert canonicalize("/legacy/a.jpg", STORE_9) == "/uploads/stores/9/a.jpg"
    assert canonicalize("a.jpg", PRODUCT_19, thumbnail=True) == "/uploads/stores/9/products/19/thumb-a.jpg"


@pytest.mark.parametrize("url", [
    "/uploads/stores/9/products/19/a.jpg",
    "a.jpg",
    "/uploads/stores/10/products/20/x.jpg",
])
def test_canonicalize_is_idempotent(url):
    once = canonicalize(url, PRODUCT_19)

    assert canonicalize(once, PRODUCT_19) == once


def test_canonicalize_moves_foreign_tenant_path_under_owner():
    assert canonicalize("/uploads/stores/10/products/20/x.jpg", PRODUCT_19) == "/uploads/stores/9/products/19/x.jpg"


def test_canonicalize_without_filename():
    assert canonicalize(None, PRODUCT_19) is None
    assert canonicalize("/", PRODUCT_19) is None
