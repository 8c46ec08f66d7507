"""
Offline integrity audit for stored image URLs.

Walks every product and store image row and checks it against the files
under MEDIA_ROOT using the same rules the read path applies:

    DRIFTED       stored URL is not canonical, the canonical file exists
    LEGACY        only the non-scoped original location exists
    CROSS_TENANT  canonical URL under another owner's prefix
    MISSING       nothing servable on disk
    EPHEMERAL     blob:/staged: reference persisted by mistake
    ORPHAN        file under uploads/stores/ that no row refers to

``repair()`` fixes what can be fixed without guessing: drifted rows are
rewritten to their canonical URL, legacy files are copied into the scoped
folder (the original is kept), and ephemeral rows are removed. Cross-tenant,
missing and orphan findings are reported only.
"""
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from app.client.fallback_image import EPHEMERAL_SCHEMES
from app.core.logging_config import get_image_logger
from app.core.redis import delete_cache, image_list_key
from app.models.product import Product
from app.models.product_image import ProductImage
from app.models.store import Store
from app.models.store_image import StoreImage
from app.services.image_resolver import stored_thumbnail_url
from app.services.ownership import PRODUCT, STORE
from app.services.path_guard import IMAGE_MEDIA_TYPES, PathSecurityGuard, PathStatus, canonicalize
from app.utils.image_paths import OwnerScope, format_canonical_path, parse_canonical_path, thumbnail_filename

logger = get_image_logger()


class IssueKind(str, Enum):
    DRIFTED = "drifted"
    LEGACY = "legacy"
    CROSS_TENANT = "cross_tenant"
    MISSING = "missing"
    EPHEMERAL = "ephemeral"
    ORPHAN = "orphan"


REPAIRABLE = {IssueKind.DRIFTED, IssueKind.LEGACY, IssueKind.EPHEMERAL}


@dataclass
class AuditIssue:
    kind: IssueKind
    entity: str
    entity_id: int
    stored_url: str
    image_id: Optional[int] = None
    canonical_url: Optional[str] = None

    def describe(self) -> str:
        row = f" image={self.image_id}" if self.image_id is not None else ""
        target = f" -> {self.canonical_url}" if self.canonical_url else ""
        return f"{self.kind.value.upper()} | {self.entity}={self.entity_id}{row} | {self.stored_url}{target}"


@dataclass
class AuditReport:
    rows_checked: int = 0
    issues: list = field(default_factory=list)
    repaired: int = 0

    @property
    def healthy(self) -> bool:
        return not self.issues

    def by_kind(self, kind: IssueKind) -> list:
        return [issue for issue in self.issues if issue.kind == kind]


@dataclass(frozen=True)
class _Row:
    image: object
    entity: str
    entity_id: int
    scope: OwnerScope


class ImageAuditor:
    def __init__(self, db: Session, guard: PathSecurityGuard, default_filename: str = "main.jpg"):
        self.db = db
        self.guard = guard
        self.default_filename = default_filename

    # -----------------------------------------------------------------
    # ROWS
    # -----------------------------------------------------------------
    def _rows(self):
        product_rows = (
            self.db.query(ProductImage, Product.store_id)
            .join(Product, ProductImage.product_id == Product.id)
            .order_by(ProductImage.product_id, ProductImage.id)
            .all()
        )
        for image, store_id in product_rows:
            yield _Row(image, PRODUCT, image.product_id, OwnerScope(store_id, image.product_id))

        for image in self.db.query(StoreImage).order_by(StoreImage.store_id, StoreImage.id).all():
            yield _Row(image, STORE, image.store_id, OwnerScope(image.store_id))

    def _check_row(self, row: _Row) -> Optional[AuditIssue]:
        stored = row.image.image_url

        def issue(kind, canonical_url=None):
            return AuditIssue(kind, row.entity, row.entity_id, stored, row.image.id, canonical_url)

        if stored and stored.startswith(EPHEMERAL_SCHEMES):
            return issue(IssueKind.EPHEMERAL)

        located = self.guard.locate(stored, row.scope)
        if located is not None:
            if located.status == PathStatus.REBUILT:
                return issue(IssueKind.DRIFTED, located.url)
            if located.status == PathStatus.LEGACY:
                return issue(IssueKind.LEGACY, canonicalize(stored, row.scope))
            return None

        parsed = parse_canonical_path(stored)
        if parsed is not None and parsed.scope != row.scope:
            return issue(IssueKind.CROSS_TENANT, canonicalize(stored, row.scope))
        return issue(IssueKind.MISSING, canonicalize(stored, row.scope))

    # -----------------------------------------------------------------
    # ORPHAN FILES
    # -----------------------------------------------------------------
    def _owner_exists(self, scope: OwnerScope) -> bool:
        if scope.product_id is None:
            return self.db.get(Store, scope.store_id) is not None
        product = self.db.get(Product, scope.product_id)
        return product is not None and product.store_id == scope.store_id

    def _scoped_files(self):
        """(scope, url) for every image file in the tenant-scoped layout."""
        stores_dir = self.guard.media_root / "uploads" / "stores"
        if not stores_dir.is_dir():
            return

        for store_dir in sorted(stores_dir.iterdir()):
            if not (store_dir.is_dir() and store_dir.name.isdigit()):
                continue
            folders = [(OwnerScope(int(store_dir.name)), store_dir)]

            products_dir = store_dir / "products"
            if products_dir.is_dir():
                for product_dir in sorted(products_dir.iterdir()):
                    if product_dir.is_dir() and product_dir.name.isdigit():
                        folders.append((OwnerScope(int(store_dir.name), int(product_dir.name)), product_dir))

            for scope, folder in folders:
                for path in sorted(folder.iterdir()):
                    if path.is_file() and path.suffix.lower() in IMAGE_MEDIA_TYPES:
                        yield scope, format_canonical_path(scope, path.name)

    def _orphans(self, rows: list) -> list:
        referenced = set()
        scopes_with_rows = set()
        for row in rows:
            scopes_with_rows.add(row.scope)
            for url, thumbnail in ((row.image.image_url, False), (stored_thumbnail_url(row.image), True)):
                canonical = canonicalize(url, row.scope, thumbnail=thumbnail)
                if canonical:
                    referenced.add(canonical)

        convention = {self.default_filename, thumbnail_filename(self.default_filename)}
        orphans = []
        for scope, url in self._scoped_files():
            if url in referenced:
                continue
            # The convention file is served only while the owner has no rows
            if (
                scope not in scopes_with_rows
                and Path(url).name in convention
                and self._owner_exists(scope)
            ):
                continue

            entity, entity_id = (STORE, scope.store_id) if scope.product_id is None else (PRODUCT, scope.product_id)
            orphans.append(AuditIssue(IssueKind.ORPHAN, entity, entity_id, url))
        return orphans

    # -----------------------------------------------------------------
    # AUDIT / REPAIR
    # -----------------------------------------------------------------
    def _scan(self):
        rows = list(self._rows())
        report = AuditReport(rows_checked=len(rows))
        issues_by_image = {}

        for row in rows:
            issue = self._check_row(row)
            if issue is not None:
                report.issues.append(issue)
                issues_by_image[(row.entity, row.image.id)] = (row, issue)

        report.issues.extend(self._orphans(rows))
        return report, issues_by_image

    def audit(self) -> AuditReport:
        report, _ = self._scan()
        for issue in report.issues:
            logger.warning(f"AUDIT | {issue.describe()}")
        logger.info(f"AUDIT DONE | rows={report.rows_checked} | issues={len(report.issues)}")
        return report

    def _copy_into_scope(self, stored_url: str, canonical_url: str) -> bool:
        source = self.guard.file_for(stored_url)
        if source is None or not canonical_url:
            return False
        target = self.guard.media_root / canonical_url.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        return True

    def _repair_row(self, row: _Row, issue: AuditIssue) -> bool:
        image = row.image

        if issue.kind == IssueKind.EPHEMERAL:
            self.db.delete(image)
            return True

        if issue.kind == IssueKind.LEGACY and not self._copy_into_scope(issue.stored_url, issue.canonical_url):
            return False

        image.image_url = issue.canonical_url
        if image.thumbnail_url:
            thumb = self.guard.locate(image.thumbnail_url, row.scope, thumbnail=True)
            if thumb is not None and thumb.status == PathStatus.REBUILT:
                image.thumbnail_url = thumb.url
        return True

    def repair(self) -> AuditReport:
        report, issues_by_image = self._scan()
        touched = set()

        for row, issue in issues_by_image.values():
            if issue.kind not in REPAIRABLE:
                logger.warning(f"AUDIT | {issue.describe()} | left for manual review")
                continue
            if self._repair_row(row, issue):
                report.repaired += 1
                touched.add((row.entity, row.entity_id))
                logger.info(f"REPAIRED | {issue.describe()}")
            else:
                logger.error(f"REPAIR FAILED | {issue.describe()}")

        for issue in report.by_kind(IssueKind.ORPHAN):
            logger.warning(f"AUDIT | {issue.describe()} | left for manual review")

        self.db.commit()
        for entity, entity_id in touched:
            delete_cache(image_list_key(entity, entity_id))

        logger.info(
            f"REPAIR DONE | rows={report.rows_checked} | issues={len(report.issues)} | repaired={report.repaired}"
        )
        return report
