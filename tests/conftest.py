import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="media-logs-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient
from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.dependencies import get_db, get_media_root
from app.core.jwt import create_access_token
from app.db.base import Base
from app.main import app
from app.models.product import Product
from app.models.product_image import ProductImage
from app.models.promotion import Promotion
from app.models.reservation import Reservation
from app.models.store import Store
from app.models.store_image import StoreImage
from app.models.user import User

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-body"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def media_root(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture
def client(engine, media_root):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_root] = lambda: str(media_root)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def log_records():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def messages_at(records, level):
    return [r["message"] for r in records if r["level"].name == level]


def write_upload(media_root: Path, url: str, content: bytes = JPEG_BYTES) -> Path:
    path = media_root / url.lstrip("/")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def token_for(user: User) -> str:
    return create_access_token({"sub": user.email, "role": "user"})


@pytest.fixture
def marketplace(db):
    """
    Two sellers with one store each, plus a customer:
        store 9  (seller) → product 19
        store 10 (rival)  → product 20
    """
    seller = User(id=1, name="Seller", email="seller@example.com", role="seller")
    rival = User(id=2, name="Rival", email="rival@example.com", role="seller")
    customer = User(id=3, name="Customer", email="customer@example.com")
    db.add_all([seller, rival, customer])
    db.flush()

    db.add_all([
        Store(id=9, user_id=seller.id, name="Corner Shop"),
        Store(id=10, user_id=rival.id, name="Rival Goods"),
    ])
    db.flush()

    db.add_all([
        Product(id=19, store_id=9, name="Teapot", category="kitchen", price=20.0),
        Product(id=20, store_id=10, name="Kettle", category="kitchen", price=35.0),
    ])
    db.commit()

    return {"seller": seller, "rival": rival, "customer": customer}


def add_product_image(db, product_id, image_url, thumbnail_url="", is_primary=False, display_order=0, id=None):
    image = ProductImage(
        id=id,
        product_id=product_id,
        image_url=image_url,
        thumbnail_url=thumbnail_url,
        is_primary=is_primary,
        display_order=display_order,
    )
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def add_store_image(db, store_id, image_url, thumbnail_url="", is_primary=False, display_order=0, id=None):
    image = StoreImage(
        id=id,
        store_id=store_id,
        image_url=image_url,
        thumbnail_url=thumbnail_url,
        is_primary=is_primary,
        display_order=display_order,
    )
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def add_promotion(db, product_id, type, starts_in_hours=-1, ends_in_hours=24, id=None):
    now = datetime.utcnow()
    promotion = Promotion(
        id=id,
        product_id=product_id,
        type=type,
        discount_percentage=10,
        starts_at=now + timedelta(hours=starts_in_hours),
        ends_at=now + timedelta(hours=ends_in_hours) if ends_in_hours is not None else None,
    )
    db.add(promotion)
    db.commit()
    db.refresh(promotion)
    return promotion


def add_reservation(db, user_id, product_id, id=None):
    reservation = Reservation(id=id, user_id=user_id, product_id=product_id)
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    return reservation
