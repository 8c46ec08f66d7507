from conftest import JPEG_BYTES, add_product_image, messages_at, write_upload

PRODUCT_DIR = "/uploads/stores/9/products/19"
PLACEHOLDER = "/placeholder-image.jpg"


def assert_placeholder(response):
    assert response.status_code == 302
    assert response.headers["location"] == PLACEHOLDER


def test_primary_image_streams_file(client, db, marketplace, media_root):
    write_upload(media_root, f"{PRODUCT_DIR}/a.jpg")
    add_product_image(db, 19, f"{PRODUCT_DIR}/a.jpg", is_primary=True)

    response = client.get("/api/products/19/primary-image", follow_redirects=False)

    assert response.status_code == 200
    assert response.content == JPEG_BYTES
    assert response.headers["content-type"] == "image/jpeg"
    assert "max-age" in response.headers["cache-control"]


def test_drifted_url_rewritten_and_served(client, db, marketplace, media_root, log_records):
    write_upload(media_root, f"{PRODUCT_DIR}/a.jpg")
    add_product_image(db, 19, "a.jpg", is_primary=True)

    response = client.get("/api/products/19/primary-image", follow_redirects=False)

    assert response.status_code == 200
    assert response.content == JPEG_BYTES
    assert any("PATH DRIFT" in m for m in messages_at(log_records, "WARNING"))


def test_foreign_image_id_redirects_without_leaking(client, db, marketplace, media_root, log_records):
    write_upload(media_root, "/uploads/stores/10/products/20/rival-secret.jpg")
    add_product_image(db, 20, "/uploads/stores/10/products/20/rival-secret.jpg", id=999)

    response = client.get("/api/products/19/image/999", follow_redirects=False)

    assert_placeholder(response)
    assert "rival-secret" not in response.text
    assert "rival-secret" not in response.headers["location"]
    assert any("OwnershipMismatch" in m for m in messages_at(log_records, "WARNING"))


def test_unknown_and_empty_products_answer_identically(client, marketplace):
    unknown = client.get("/api/products/424242/primary-image", follow_redirects=False)
    empty = client.get("/api/products/19/primary-image", follow_redirects=False)
    malformed = client.get("/api/products/not-a-number/primary-image", follow_redirects=False)

    for response in (unknown, empty, malformed):
        assert_placeholder(response)
    assert unknown.content == empty.content == malformed.content


def test_default_convention_file(client, marketplace, media_root):
    write_upload(media_root, f"{PRODUCT_DIR}/main.jpg", b"default")

    response = client.get("/api/products/19/primary-image", follow_redirects=False)

    assert response.status_code == 200
    assert response.content == b"default"


def test_thumbnail_route(client, db, marketplace, media_root):
    write_upload(media_root, f"{PRODUCT_DIR}/thumb-a.jpg", b"small")
    add_product_image(db, 19, f"{PRODUCT_DIR}/a.jpg", is_primary=True)

    response = client.get("/api/products/19/thumbnail", follow_redirects=False)

    assert response.status_code == 200
    assert response.content == b"small"


def test_specific_image_route(client, db, marketplace, media_root):
    write_upload(media_root, f"{PRODUCT_DIR}/b.png", b"png-bytes")
    image = add_product_image(db, 19, f"{PRODUCT_DIR}/b.png")

    response = client.get(f"/api/products/19/image/{image.id}", follow_redirects=False)

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"


def test_specific_image_missing_file(client, db, marketplace):
    image = add_product_image(db, 19, f"{PRODUCT_DIR}/gone.jpg")

    response = client.get(f"/api/products/19/image/{image.id}", follow_redirects=False)

    assert_placeholder(response)


def test_list_images(client, db, marketplace):
    add_product_image(db, 19, "b.jpg", display_order=1)
    primary = add_product_image(db, 19, f"{PRODUCT_DIR}/a.jpg", is_primary=True)

    response = client.get("/api/products/19/images")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["product"] == {"id": 19, "name": "Teapot", "store_id": 9}
    assert body["images"][0]["id"] == primary.id
    assert body["images"][1]["image_url"] == f"{PRODUCT_DIR}/b.jpg"


def test_list_images_unknown_product_is_empty_not_404(client, marketplace):
    unknown = client.get("/api/products/424242/images")
    malformed = client.get("/api/products/abc/images")

    for response in (unknown, malformed):
        assert response.status_code == 200
        assert response.json() == {"success": True, "product": None, "images": []}


def test_list_images_served_from_cache(client, marketplace, monkeypatch):
    from app.api.routes import product_images

    cached = {"success": True, "product": {"id": 19, "name": "Cached", "store_id": 9}, "images": []}
    monkeypatch.setattr(product_images, "get_cache", lambda key: cached if key == "images:product:19" else None)

    assert client.get("/api/products/19/images").json()["product"]["name"] == "Cached"


def test_list_images_written_to_cache(client, db, marketplace, monkeypatch):
    from app.api.routes import product_images

    stored = {}
    monkeypatch.setattr(product_images, "set_cache", lambda key, value, ttl=60: stored.update({key: value}))
    add_product_image(db, 19, f"{PRODUCT_DIR}/a.jpg", is_primary=True)

    client.get("/api/products/19/images")

    assert stored["images:product:19"]["images"][0]["image_url"] == f"{PRODUCT_DIR}/a.jpg"
