from app.core import config

from conftest import messages_at, write_upload


def test_canonical_upload_served(client, media_root):
    write_upload(media_root, "/uploads/stores/9/products/19/a.jpg", b"scoped")

    response = client.get("/uploads/stores/9/products/19/a.jpg", follow_redirects=False)

    assert response.status_code == 200
    assert response.content == b"scoped"


def test_legacy_upload_served_with_warning(client, media_root, log_records):
    write_upload(media_root, "/uploads/misc/a.jpg", b"legacy")

    response = client.get("/uploads/misc/a.jpg", follow_redirects=False)

    assert response.status_code == 200
    assert any("SECURITY" in m for m in messages_at(log_records, "WARNING"))


def test_missing_upload_redirects(client, media_root):
    response = client.get("/uploads/stores/9/nothing.jpg", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/placeholder-image.jpg"


def test_non_image_upload_not_served(client, media_root):
    write_upload(media_root, "/uploads/stores/9/notes.txt", b"text")

    response = client.get("/uploads/stores/9/notes.txt", follow_redirects=False)

    assert response.status_code == 302


def test_encoded_traversal_not_served(client, tmp_path, media_root):
    (tmp_path / "secret.jpg").write_bytes(b"secret")

    response = client.get("/uploads/..%2F..%2Fsecret.jpg", follow_redirects=False)

    assert response.status_code in (302, 404)
    assert b"secret" not in response.content


def test_media_root_outside_uploads_not_served(client, media_root):
    write_upload(media_root, "/private/avatar.jpg", b"private")

    response = client.get("/uploads/..%2Fprivate%2Favatar.jpg", follow_redirects=False)

    assert response.status_code in (302, 404)
    assert b"private" not in response.content


def test_placeholder_rendered_when_no_asset(client, monkeypatch):
    monkeypatch.setattr(config, "PLACEHOLDER_FILE", "/nonexistent/placeholder.jpg")

    response = client.get("/placeholder-image.jpg")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert response.content.startswith(b"\xff\xd8")


def test_placeholder_asset_served(client, monkeypatch, tmp_path):
    asset = tmp_path / "placeholder.jpg"
    asset.write_bytes(b"\xff\xd8custom")
    monkeypatch.setattr(config, "PLACEHOLDER_FILE", str(asset))

    response = client.get("/placeholder-image.jpg")

    assert response.content == b"\xff\xd8custom"
