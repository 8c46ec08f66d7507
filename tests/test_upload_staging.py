import pytest
import requests

from app.client.api import MarketplaceClient, UploadFailed
from app.client.upload_staging import STAGED_SCHEME, DeferredUploadStaging, is_ephemeral


class FakeApi:
    """Records calls in order; uploads of names listed in ``broken`` fail."""

    def __init__(self, broken=()):
        self.broken = set(broken)
        self.calls = []
        self.next_id = 41

    def create_product(self, data):
        self.calls.append(("create", dict(data)))
        return {"id": self.next_id, **data}

    create_store = create_product

    def update_product(self, entity_id, data):
        self.calls.append(("update", entity_id, dict(data)))
        return {"id": entity_id, **data}

    update_store = update_product

    def upload_image(self, entity_type, entity_id, filename, content, content_type, store_id=None):
        self.calls.append(("upload", entity_type, entity_id, filename, store_id))
        if filename in self.broken:
            raise requests.ConnectionError(f"connection reset while sending {filename}")
        if entity_type == "store":
            return f"/uploads/stores/{entity_id}/{filename}"
        return f"/uploads/stores/{store_id}/products/{entity_id}/{filename}"


def test_new_entity_stages_instead_of_uploading():
    api = FakeApi()
    staging = DeferredUploadStaging(api, "product", store_id=9)

    ref = staging.add_file("a.jpg", b"img")

    assert ref.startswith(STAGED_SCHEME)
    assert is_ephemeral(ref)
    assert api.calls == []
    assert [f.filename for f in staging.pending] == ["a.jpg"]
    assert staging.pending[0].content_type == "image/jpeg"


def test_existing_entity_uploads_immediately():
    api = FakeApi()
    staging = DeferredUploadStaging(api, "store", entity_id=9)

    url = staging.add_file("front.png", b"img")

    assert url == "/uploads/stores/9/front.png"
    assert staging.images == [url]
    assert api.calls[0][:4] == ("upload", "store", 9, "front.png")


def test_save_new_uploads_after_create_and_before_update():
    api = FakeApi()
    staging = DeferredUploadStaging(api, "product", store_id=9, images=["/uploads/stores/9/products/1/old.jpg"])
    staging.add_file("a.jpg", b"1")
    staging.add_file("b.jpg", b"2")

    outcome = staging.save_new({"name": "Teapot"})

    kinds = [call[0] for call in api.calls]
    assert kinds == ["create", "upload", "upload", "update"]
    assert api.calls[0][1]["images"] == ["/uploads/stores/9/products/1/old.jpg"]
    assert api.calls[3][2]["images"] == [
        "/uploads/stores/9/products/1/old.jpg",
        "/uploads/stores/9/products/41/a.jpg",
        "/uploads/stores/9/products/41/b.jpg",
    ]
    assert outcome.complete
    assert outcome.warning is None
    assert staging.pending == []


def test_partial_failure_keeps_successes_and_reports():
    api = FakeApi(broken={"b.jpg"})
    staging = DeferredUploadStaging(api, "product", store_id=9)
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        staging.add_file(name, b"x")

    outcome = staging.save_new({"name": "Teapot"})

    assert not outcome.complete
    assert [f.filename for f in outcome.failures] == ["b.jpg"]
    assert "b.jpg" in outcome.warning
    assert outcome.images == [
        "/uploads/stores/9/products/41/a.jpg",
        "/uploads/stores/9/products/41/c.jpg",
    ]
    assert not any(is_ephemeral(u) for u in api.calls[-1][2]["images"])
    assert [f.filename for f in staging.pending] == ["b.jpg"]
    assert sum(1 for c in api.calls if c[0] == "upload" and c[3] == "b.jpg") == 1


def test_store_uploads_use_own_id():
    api = FakeApi()
    staging = DeferredUploadStaging(api, "store")
    staging.add_file("front.jpg", b"x")

    outcome = staging.save_new({"name": "Corner Shop"})

    assert outcome.images == ["/uploads/stores/41/front.jpg"]
    assert api.calls[1] == ("upload", "store", 41, "front.jpg", 41)


def test_product_upload_without_store_refused():
    staging = DeferredUploadStaging(FakeApi(), "product", entity_id=3)

    with pytest.raises(ValueError):
        staging.add_file("a.jpg", b"x")


def test_remove_forgets_staged_file():
    staging = DeferredUploadStaging(FakeApi(), "product", store_id=9)
    ref = staging.add_file("a.jpg", b"x")

    staging.remove(ref)

    assert staging.images == []
    assert staging.pending == []


def test_image_limit():
    staging = DeferredUploadStaging(FakeApi(), "product", store_id=9, max_images=1)
    staging.add_file("a.jpg", b"x")

    with pytest.raises(ValueError):
        staging.add_file("b.jpg", b"x")


def test_save_new_twice_refused():
    staging = DeferredUploadStaging(FakeApi(), "product", entity_id=5, store_id=9)

    with pytest.raises(ValueError):
        staging.save_new({"name": "x"})


class StubResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class StubSession:
    def __init__(self, payload):
        self.payload = payload
        self.headers = {}
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        return StubResponse(self.payload)


def test_client_upload_request_shape():
    session = StubSession({"success": True, "images": [{"imageUrl": "/uploads/stores/9/products/19/a.jpg"}]})
    api = MarketplaceClient("https://shop.example.com/", token="tok", session=session)

    url = api.upload_image("product", 19, "a.jpg", b"x", "image/jpeg", store_id=9)

    assert url == "/uploads/stores/9/products/19/a.jpg"
    method, target, kwargs = session.requests[0]
    assert (method, target) == ("POST", "https://shop.example.com/api/upload/images")
    assert kwargs["params"] == {"type": "product", "entityId": "19", "storeId": "9"}
    assert session.headers["Authorization"] == "Bearer tok"


def test_client_upload_error_payload():
    api = MarketplaceClient("https://shop.example.com", session=StubSession({"success": False, "message": "too big"}))

    with pytest.raises(UploadFailed, match="too big"):
        api.upload_image("store", 9, "a.jpg", b"x")
