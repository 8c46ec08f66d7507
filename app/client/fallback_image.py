"""
Client-side image fallback.

``FallbackImage`` tracks one rendered image. The original source is loaded
first. Each load failure rewrites the current URL with the next strategy that
applies to it, and the third failure (or a failure no remaining strategy can
rewrite) settles permanently on the fallback. Strategies are plain functions
``(url) -> url | None`` so they can be tested without rendering anything.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence
from urllib.parse import urlsplit

from app.core import config
from app.core.logging_config import get_logger
from app.utils.image_paths import thumbnail_filename

logger = get_logger()

MAX_ATTEMPTS = 3
DEFAULT_FALLBACK = "/placeholder-image.jpg"
EPHEMERAL_SCHEMES = ("blob:", "staged:")

_API_PRODUCT_RE = re.compile(r"^/api/products/(?P<id>\d+)/(?P<route>primary-image|thumbnail|image/\d+)$")
_API_STORE_RE = re.compile(r"^/api/stores/(?P<id>\d+)/(?P<route>primary-image|thumbnail|image/\d+)$")

Strategy = Callable[[str], Optional[str]]


class UrlShape(str, Enum):
    EMPTY = "empty"
    EPHEMERAL = "ephemeral"
    API = "api"
    UPLOADS = "uploads"
    RELATIVE_UPLOADS = "relative_uploads"
    ABSOLUTE = "absolute"
    UNKNOWN = "unknown"


def classify(url: Optional[str]) -> UrlShape:
    if not url:
        return UrlShape.EMPTY
    if url.startswith(EPHEMERAL_SCHEMES):
        return UrlShape.EPHEMERAL
    if url.startswith("/api/"):
        return UrlShape.API
    if url.startswith("/uploads/"):
        return UrlShape.UPLOADS
    if url.startswith("uploads/"):
        return UrlShape.RELATIVE_UPLOADS
    if url.startswith(("http://", "https://")):
        return UrlShape.ABSOLUTE
    return UrlShape.UNKNOWN


# ---------------------------------------------------------------------
# STRATEGIES
# ---------------------------------------------------------------------
def guess_direct_upload(store_id: Optional[int] = None, default_filename: str = "main.jpg") -> Strategy:
    """First rewrite: API route → convention upload path; /uploads/x → uploads/x."""

    def convention_file(route: str) -> str:
        # Thumbnail routes fall back to the thumb- variant of the convention file
        return thumbnail_filename(default_filename) if route == "thumbnail" else default_filename

    def strategy(url: str) -> Optional[str]:
        shape = classify(url)
        if shape == UrlShape.UPLOADS:
            return url[1:]
        if shape == UrlShape.RELATIVE_UPLOADS:
            return f"/{url}"
        if shape != UrlShape.API:
            return None

        path = urlsplit(url).path
        match = _API_STORE_RE.match(path)
        if match:
            return f"/uploads/stores/{match.group('id')}/{convention_file(match.group('route'))}"
        match = _API_PRODUCT_RE.match(path)
        if match and store_id is not None:
            return (
                f"/uploads/stores/{store_id}/products/{match.group('id')}/"
                f"{convention_file(match.group('route'))}"
            )
        return None

    return strategy


def absolute_origin(origin: Optional[str]) -> Strategy:
    """Second rewrite: pin a relative URL to the page origin."""

    def strategy(url: str) -> Optional[str]:
        if not origin or classify(url) in (UrlShape.ABSOLUTE, UrlShape.EPHEMERAL, UrlShape.EMPTY):
            return None
        return f"{origin.rstrip('/')}/{url.lstrip('/')}"

    return strategy


def default_strategies(origin: Optional[str] = None, store_id: Optional[int] = None) -> List[Strategy]:
    return [
        guess_direct_upload(store_id, config.DEFAULT_IMAGE_FILENAME),
        absolute_origin(origin or config.PUBLIC_BASE_URL),
    ]


# ---------------------------------------------------------------------
# STATE MACHINE
# ---------------------------------------------------------------------
@dataclass
class FallbackImage:
    src: Optional[str]
    fallback: str = DEFAULT_FALLBACK
    strategies: Sequence[Strategy] = field(default_factory=default_strategies)

    url: str = field(init=False)
    attempt: int = field(init=False, default=0)
    failed: bool = field(init=False, default=False)
    loaded: bool = field(init=False, default=False)
    _next_strategy: int = field(init=False, default=0, repr=False)

    def __post_init__(self):
        self.reset(self.src)

    @property
    def settled(self) -> bool:
        return self.failed or self.loaded

    def reset(self, src: Optional[str]):
        """A new source starts a fresh attempt cycle."""
        self.src = src
        self.attempt = 0
        self.loaded = False
        self.failed = False
        self._next_strategy = 0
        self.url = src or ""

        if classify(src) in (UrlShape.EMPTY, UrlShape.EPHEMERAL):
            # Ephemeral references never survive a reload
            self._settle(f"untrusted source {src!r}")

    def _settle(self, reason: str):
        self.failed = True
        self.url = self.fallback
        logger.debug(f"Image settled on fallback: {reason}")

    def _rewrite(self) -> Optional[str]:
        """Next strategy, in order, that turns the current URL into a new one."""
        while self._next_strategy < len(self.strategies):
            strategy = self.strategies[self._next_strategy]
            self._next_strategy += 1
            rewritten = strategy(self.url)
            if rewritten and rewritten != self.url:
                return rewritten
        return None

    def on_load(self, loaded_url: Optional[str] = None):
        if loaded_url is None or loaded_url == self.url:
            self.loaded = True

    def on_error(self, failed_url: Optional[str] = None) -> Optional[str]:
        """
        Handle a load failure; return the next URL to load, or None to stop.

        Events for a URL that is no longer current are ignored so that
        duplicate or late events cannot push past the attempt cap.
        """
        if self.failed:
            return None
        if failed_url is not None and failed_url != self.url:
            return None

        self.attempt += 1
        logger.warning(f"Image load failed (attempt {self.attempt}): {self.url}")

        if self.attempt >= MAX_ATTEMPTS:
            self._settle(f"{self.attempt} failed attempts for {self.src!r}")
            return self.url

        rewritten = self._rewrite()
        if rewritten is None:
            self._settle(f"no rewrite for {self.url!r}")
            return self.url

        self.url = rewritten
        return self.url
