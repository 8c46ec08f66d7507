"""
Deferred upload staging.

While a store or product is being created it has no id, and the upload
pipeline files images under that id. Selected files are therefore held as
``staged:`` references and listed alongside real URLs. Once the entity is
created, one reconciliation pass uploads them and swaps each reference for
its durable URL before the entity's image list is saved.
"""
import mimetypes
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import requests

from app.client.api import MarketplaceClient, UploadFailed
from app.client.fallback_image import EPHEMERAL_SCHEMES
from app.core.logging_config import get_logger

logger = get_logger()

STAGED_SCHEME = "staged:"
PRODUCT = "product"
STORE = "store"


def is_ephemeral(url: Optional[str]) -> bool:
    return bool(url) and url.startswith(EPHEMERAL_SCHEMES)


@dataclass
class StagedFile:
    ref: str
    filename: str
    content: bytes
    content_type: str


@dataclass
class StagedFailure:
    ref: str
    filename: str
    error: str


@dataclass
class ReconcileResult:
    uploaded: Dict[str, str] = field(default_factory=dict)  # ref -> durable URL
    failures: List[StagedFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures


@dataclass
class SaveOutcome:
    entity: dict
    images: List[str]
    failures: List[StagedFailure]

    @property
    def complete(self) -> bool:
        return not self.failures

    @property
    def warning(self) -> Optional[str]:
        if self.complete:
            return None
        names = ", ".join(f.filename for f in self.failures)
        return f"Saved, but {len(self.failures)} image(s) failed to upload: {names}"


class DeferredUploadStaging:
    def __init__(self, api: MarketplaceClient, entity_type: str, entity_id: Optional[int] = None,
                 store_id: Optional[int] = None, images: Optional[List[str]] = None, max_images: int = 5):
        if entity_type not in (PRODUCT, STORE):
            raise ValueError(f"Unsupported entity type {entity_type!r}")
        self.api = api
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.store_id = store_id
        self.max_images = max_images
        self.images: List[str] = list(images or [])
        self._staged: Dict[str, StagedFile] = {}

    @property
    def pending(self) -> List[StagedFile]:
        return [self._staged[ref] for ref in self.images if ref in self._staged]

    def durable_images(self) -> List[str]:
        return [url for url in self.images if not is_ephemeral(url)]

    def _upload_store_id(self, entity_id: int) -> Optional[int]:
        if self.entity_type == STORE:
            return entity_id
        if self.store_id is None:
            raise ValueError("store_id is required to upload product images")
        return self.store_id

    def add_file(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Add one selected file: staged if the entity is new, uploaded otherwise."""
        if len(self.images) >= self.max_images:
            raise ValueError(f"At most {self.max_images} images allowed")

        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"

        if self.entity_id is None:
            ref = f"{STAGED_SCHEME}{uuid.uuid4().hex}/{filename}"
            self._staged[ref] = StagedFile(ref, filename, content, content_type)
            self.images.append(ref)
            logger.info(f"Staged {filename} for new {self.entity_type}")
            return ref

        url = self.api.upload_image(
            self.entity_type, self.entity_id, filename, content, content_type,
            store_id=self._upload_store_id(self.entity_id),
        )
        self.images.append(url)
        return url

    def add_path(self, path: str) -> str:
        file_path = Path(path)
        return self.add_file(file_path.name, file_path.read_bytes())

    def remove(self, url: str):
        """Drop an image from the list; staged files are simply forgotten."""
        self.images.remove(url)
        self._staged.pop(url, None)

    def reconcile(self, entity_id: int) -> ReconcileResult:
        """
        Upload every staged file for the now-persisted entity.

        Each file is tried once. Failures stay staged and are reported back;
        nothing is retried automatically.
        """
        self.entity_id = entity_id
        store_id = self._upload_store_id(entity_id)
        result = ReconcileResult()

        for staged in self.pending:
            try:
                url = self.api.upload_image(
                    self.entity_type, entity_id, staged.filename, staged.content,
                    staged.content_type, store_id=store_id,
                )
            except (requests.RequestException, UploadFailed) as e:
                logger.warning(f"Staged upload failed | {self.entity_type}={entity_id} | {staged.filename} | {e}")
                result.failures.append(StagedFailure(staged.ref, staged.filename, str(e)))
                continue

            self.images[self.images.index(staged.ref)] = url
            del self._staged[staged.ref]
            result.uploaded[staged.ref] = url

        return result

    def save_new(self, data: dict) -> SaveOutcome:
        """
        Create the entity, upload its staged files, then save its image list.

        The final save only ever carries durable URLs; it is issued after the
        reconciliation pass has finished.
        """
        if self.entity_id is not None:
            raise ValueError(f"{self.entity_type} already saved with id {self.entity_id}")

        create = self.api.create_product if self.entity_type == PRODUCT else self.api.create_store
        update = self.api.update_product if self.entity_type == PRODUCT else self.api.update_store

        created = create({**data, "images": self.durable_images()})
        entity_id = created["id"]

        result = self.reconcile(entity_id)
        entity = update(entity_id, {**data, "images": self.durable_images()})

        outcome = SaveOutcome(entity=entity, images=self.durable_images(), failures=result.failures)
        if not outcome.complete:
            logger.warning(f"{self.entity_type} {entity_id} saved with incomplete images: {outcome.warning}")
        return outcome
