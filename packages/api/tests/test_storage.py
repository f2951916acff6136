# This project was developed with assistance from AI tools.
"""Tests for per-client private file storage."""

import pytest

from gervis.services import storage as storage_module
from gervis.services.storage import StorageService, is_secured_url, parse_secured_url


def test_client_dir_layout(storage):
    assert storage.client_dir(42) == storage.root / "client_42"


def test_resolve_strips_path_components(storage):
    assert storage.resolve(42, "../../etc/passwd") == storage.client_dir(42) / "passwd"
    assert storage.resolve(42, "sub/dir/file.pdf") == storage.client_dir(42) / "file.pdf"


@pytest.mark.parametrize("name", ["", ".", "..", "dir/"])
def test_resolve_rejects_empty_names(storage, name):
    assert storage.resolve(42, name) is None


def test_build_url():
    assert StorageService.build_url(42, "a.pdf") == "/api/secured-files/42/a.pdf"


@pytest.mark.parametrize(
    ("name", "content_type"),
    [
        ("scan.PDF", "application/pdf"),
        ("front.jpg", "image/jpeg"),
        ("front.jpeg", "image/jpeg"),
        ("logo.png", "image/png"),
        ("notes.txt", "application/octet-stream"),
    ],
)
def test_content_type_for(name, content_type):
    assert StorageService.content_type_for(name) == content_type


async def test_save_and_delete(storage):
    url = await storage.save_file(42, "selfie_42_1.jpg", b"jpeg-bytes")

    assert url == "/api/secured-files/42/selfie_42_1.jpg"
    path = storage.client_dir(42) / "selfie_42_1.jpg"
    assert path.read_bytes() == b"jpeg-bytes"
    assert await storage.exists(path)

    await storage.delete_file(42, "selfie_42_1.jpg")
    assert not await storage.exists(path)
    # deleting twice is harmless
    await storage.delete_file(42, "selfie_42_1.jpg")


async def test_save_rejects_invalid_name(storage):
    with pytest.raises(ValueError):
        await storage.save_file(42, "..", b"x")


def test_singleton_requires_init(monkeypatch):
    monkeypatch.setattr(storage_module, "_service", None)
    with pytest.raises(RuntimeError):
        storage_module.get_storage_service()


def test_singleton_returns_initialised_service(storage):
    assert storage_module.get_storage_service() is storage


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("/api/secured-files/42/contract.pdf", (42, "contract.pdf")),
        ("/api/secured-files/42/my%20file.pdf?token=abc", (42, "my file.pdf")),
        ("/api/secured-files/abc/contract.pdf", None),
        ("/api/secured-files/42/", None),
        ("/client/public/docs/a.pdf", None),
    ],
)
def test_parse_secured_url(url, expected):
    assert parse_secured_url(url) == expected


def test_is_secured_url():
    assert is_secured_url("/api/secured-files/7/x.jpg")
    assert not is_secured_url("/docs/a.pdf")
