"""
Thin HTTP client for the storefront/seller API.

Entity saves and the multipart upload pipeline live in other services; this
wrapper only knows their request/response shapes.
"""
from typing import Dict, List, Optional

import requests

from app.core.logging_config import get_logger

logger = get_logger()

DEFAULT_TIMEOUT = 30


class UploadFailed(Exception):
    """The upload pipeline refused a file or answered with an error payload."""


class MarketplaceClient:
    def __init__(self, base_url: str, token: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _json(self, method: str, path: str, **kwargs) -> dict:
        response = self.session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        response.raise_for_status()
        return response.json()

    # -------- ENTITY SAVES --------
    def create_store(self, data: dict) -> dict:
        return self._json("POST", "/api/stores", json=data)

    def update_store(self, store_id: int, data: dict) -> dict:
        return self._json("PUT", f"/api/stores/{store_id}", json=data)

    def create_product(self, data: dict) -> dict:
        return self._json("POST", "/api/products", json=data)

    def update_product(self, product_id: int, data: dict) -> dict:
        return self._json("PUT", f"/api/products/{product_id}", json=data)

    # -------- UPLOAD PIPELINE --------
    def upload_image(self, entity_type: str, entity_id: int, filename: str, content: bytes,
                     content_type: str = "image/jpeg", store_id: Optional[int] = None) -> str:
        """Upload one file and return the durable URL the pipeline assigned to it."""
        params: Dict[str, str] = {"type": entity_type, "entityId": str(entity_id)}
        if store_id is not None:
            params["storeId"] = str(store_id)

        result = self._json(
            "POST",
            "/api/upload/images",
            params=params,
            files=[("images", (filename, content, content_type))],
        )

        images: List[dict] = result.get("images") or []
        if not result.get("success") or not images:
            raise UploadFailed(result.get("message") or f"Upload of {filename} returned no image")

        url = images[0].get("imageUrl")
        if not url:
            raise UploadFailed(f"Upload of {filename} returned no imageUrl")

        logger.info(f"Uploaded {filename} for {entity_type} {entity_id} -> {url}")
        return url
