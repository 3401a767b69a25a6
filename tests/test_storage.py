import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import pytest

from labinventory.error import StorageError
from labinventory.storage import CloudinaryStore, public_id_from_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://res.cloudinary.com/demo/image/upload/inventario/abc123.png", "inventario/abc123"),
        ("https://res.cloudinary.com/demo/image/upload/a/b/photo.jpeg", "a/b/photo"),
        ("https://res.cloudinary.com/demo/image/upload/photo.jpg", "photo"),
        ("https://res.cloudinary.com/demo/image/upload/inventario/my.board.v2.png", "inventario/my.board.v2"),
        ("https://res.cloudinary.com/demo/image/upload/inventario/noext", "inventario/noext"),
        ("https://res.cloudinary.com/demo/image/upload/v1700000000/inventario/abc.png", "inventario/abc"),
        ("https://res.cloudinary.com/demo/image/upload/v1700000000/photo.jpg", "photo"),
        ("https://res.cloudinary.com/demo/image/upload/inventario/v2/abc.png", "inventario/v2/abc"),
    ],
)
def test_public_id_from_url(url, expected):
    assert public_id_from_url(url) == expected


@pytest.mark.parametrize(
    "url",
    [None, "", "https://example.org/images/photo.png", "photo.png", "https://res.cloudinary.com/demo/image/uploads/x.png"],
)
def test_public_id_missing_marker(url):
    assert public_id_from_url(url) is None


def test_public_id_is_deterministic():
    url = "https://res.cloudinary.com/demo/image/upload/inventario/abc123.png"
    assert public_id_from_url(url) == public_id_from_url(url)


def _store():
    return CloudinaryStore(cloud_name="demo", api_key="key", api_secret="secret")


def test_upload_returns_secure_url(monkeypatch):
    calls = []

    def fake_upload(file, **options):
        calls.append((file.read(), options))
        return {"secure_url": "https://res.cloudinary.com/demo/image/upload/inventario/x.png"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    url = _store().upload(b"bytes", "inventario")
    assert url.endswith("/inventario/x.png")
    data, options = calls[0]
    assert data == b"bytes"
    assert options["folder"] == "inventario"
    assert options["cloud_name"] == "demo"


def test_upload_failure_is_wrapped(monkeypatch):
    def fake_upload(file, **options):
        raise cloudinary.exceptions.Error("quota exceeded")

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    with pytest.raises(StorageError):
        _store().upload(b"bytes", "inventario")


def test_delete_passes_public_id(monkeypatch):
    calls = []
    monkeypatch.setattr(
        cloudinary.uploader, "destroy", lambda public_id, **options: calls.append(public_id) or {"result": "ok"}
    )

    _store().delete("inventario/abc")
    assert calls == ["inventario/abc"]


def test_delete_failure_is_wrapped(monkeypatch):
    def fake_destroy(public_id, **options):
        raise cloudinary.exceptions.Error("boom")

    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)

    with pytest.raises(StorageError):
        _store().delete("inventario/abc")


def test_unconfigured_store_raises_storage_error(monkeypatch):
    monkeypatch.delenv("CLOUDINARY_URL", raising=False)
    cloudinary.reset_config()
    store = CloudinaryStore(cloud_name=None, api_key=None, api_secret=None)

    with pytest.raises(StorageError):
        store.upload(b"x", "inventario")
    with pytest.raises(StorageError):
        store.delete("inventario/abc")


def test_missing_credentials_value_error_is_wrapped(monkeypatch):
    def fake_destroy(public_id, **options):
        raise ValueError("Must supply api_key")

    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)

    with pytest.raises(StorageError):
        _store().delete("inventario/abc")


def test_blank_credentials_are_not_passed_to_the_sdk(monkeypatch):
    seen = {}
    monkeypatch.setattr(
        cloudinary.uploader, "destroy", lambda public_id, **options: seen.update(options) or {"result": "ok"}
    )

    CloudinaryStore(cloud_name="demo", api_key="", api_secret=None).delete("inventario/abc")
    assert seen == {"cloud_name": "demo", "secure": True}
