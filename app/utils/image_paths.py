"""
Tenant-scoped upload paths.

Every image written by the upload pipeline lives under one of:

    /uploads/stores/{store_id}/products/{product_id}/{filename}
    /uploads/stores/{store_id}/{filename}

and thumbnails sit beside the full-size file as ``thumb-{filename}``.
The store/product ids encoded in the path are the security boundary, so
drift detection compares parsed records instead of matching substrings.
"""
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

THUMB_PREFIX = "thumb-"

_CANONICAL_RE = re.compile(
    r"^/uploads/stores/(?P<store_id>\d+)"
    r"(?:/products/(?P<product_id>\d+))?"
    r"/(?P<filename>[^/]+)$"
)


@dataclass(frozen=True)
class OwnerScope:
    """The tenant an image must live under: a store, or a product of a store."""

    store_id: int
    product_id: Optional[int] = None

    @property
    def prefix(self) -> str:
        if self.product_id is None:
            return f"/uploads/stores/{self.store_id}/"
        return f"/uploads/stores/{self.store_id}/products/{self.product_id}/"


@dataclass(frozen=True)
class CanonicalPath:
    store_id: int
    product_id: Optional[int]
    filename: str

    @property
    def scope(self) -> OwnerScope:
        return OwnerScope(self.store_id, self.product_id)

    @property
    def url(self) -> str:
        return format_canonical_path(self.scope, self.filename)


def is_safe_filename(name: Optional[str]) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


def parse_canonical_path(url: Optional[str]) -> Optional[CanonicalPath]:
    """Return the typed record for a canonical upload URL, or None."""
    if not url:
        return None
    match = _CANONICAL_RE.match(url)
    if not match or not is_safe_filename(match.group("filename")):
        return None

    product_id = match.group("product_id")
    return CanonicalPath(
        store_id=int(match.group("store_id")),
        product_id=int(product_id) if product_id is not None else None,
        filename=match.group("filename"),
    )


def format_canonical_path(scope: OwnerScope, filename: str) -> str:
    if not is_safe_filename(filename):
        raise ValueError(f"Unsafe image filename: {filename!r}")
    return f"{scope.prefix}{filename}"


def extract_filename(url: Optional[str]) -> Optional[str]:
    """Trailing path segment of a stored URL (query and fragment dropped)."""
    if not url:
        return None
    path = urlsplit(url.strip()).path
    name = path.rstrip("/").split("/")[-1] if "/" in path else path
    return name if is_safe_filename(name) else None


def thumbnail_filename(filename: str) -> str:
    """Apply the thumb- convention exactly once."""
    if filename.startswith(THUMB_PREFIX):
        return filename
    return f"{THUMB_PREFIX}{filename}"
