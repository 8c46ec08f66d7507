"""
Path security guard.

Stored image URLs are untrusted: they may predate the tenant-scoped layout,
have been edited by hand, or point at another tenant's folder. The guard
turns a stored URL plus a validated owner scope into a file that is known to
exist under that owner's prefix, or reports that nothing servable exists.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit

from app.core.logging_config import get_image_logger
from app.utils.image_paths import (
    OwnerScope,
    extract_filename,
    format_canonical_path,
    parse_canonical_path,
    thumbnail_filename,
)

logger = get_image_logger()

IMAGE_MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


class PathStatus(str, Enum):
    CANONICAL = "canonical"  # stored URL already under the owner's prefix
    REBUILT = "rebuilt"      # drifted URL, file found under the owner's prefix
    LEGACY = "legacy"        # drifted URL, only the original location exists


@dataclass(frozen=True)
class LocatedImage:
    url: str
    path: Path
    status: PathStatus

    @property
    def media_type(self) -> str:
        return media_type_for(self.path)


def media_type_for(path: Union[str, Path]) -> str:
    return IMAGE_MEDIA_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def canonicalize(stored_url: Optional[str], scope: OwnerScope, thumbnail: bool = False) -> Optional[str]:
    """
    Rewrite a stored URL under the owner's prefix.

    Already-canonical URLs for the same owner come back unchanged, so the
    function is idempotent. Returns None when no usable filename can be
    recovered from the stored value.
    """
    parsed = parse_canonical_path(stored_url)
    if parsed is not None and parsed.scope == scope:
        return stored_url

    filename = extract_filename(stored_url)
    if not filename:
        return None
    if thumbnail:
        filename = thumbnail_filename(filename)
    return format_canonical_path(scope, filename)


class PathSecurityGuard:
    def __init__(self, media_root: Union[str, Path]):
        self.media_root = Path(media_root).resolve()

    def file_for(self, url: Optional[str]) -> Optional[Path]:
        """Map a local URL onto MEDIA_ROOT; None if it escapes the root or is missing."""
        if not url:
            return None
        parts = urlsplit(url)
        if parts.scheme or parts.netloc:
            return None

        try:
            candidate = (self.media_root / parts.path.lstrip("/")).resolve()
        except (ValueError, OSError):
            return None

        if not candidate.is_relative_to(self.media_root):
            logger.warning(f"Path traversal blocked: {url}")
            return None
        if not candidate.is_file():
            return None
        return candidate

    def locate(self, stored_url: Optional[str], scope: OwnerScope, thumbnail: bool = False) -> Optional[LocatedImage]:
        parsed = parse_canonical_path(stored_url)

        if parsed is not None and parsed.scope == scope:
            path = self.file_for(stored_url)
            if path:
                return LocatedImage(stored_url, path, PathStatus.CANONICAL)
            logger.info(f"Canonical file missing on disk: {stored_url}")
            return None

        rebuilt = canonicalize(stored_url, scope, thumbnail=thumbnail)
        if rebuilt:
            path = self.file_for(rebuilt)
            if path:
                logger.warning(
                    f"PATH DRIFT | stored={stored_url!r} | served={rebuilt} | prefix={scope.prefix}"
                )
                return LocatedImage(rebuilt, path, PathStatus.REBUILT)

        # A canonical path for some other tenant is never served, even if it exists
        if parsed is not None:
            logger.warning(
                f"CROSS-TENANT PATH REFUSED | stored={stored_url!r} | expected prefix={scope.prefix}"
            )
            return None

        path = self.file_for(stored_url)
        if path and path.suffix.lower() in IMAGE_MEDIA_TYPES:
            logger.warning(
                f"SECURITY | serving non-scoped legacy path {stored_url!r} "
                f"(expected prefix {scope.prefix})"
            )
            return LocatedImage(stored_url, path, PathStatus.LEGACY)

        return None

