"""
Tests for the local PhotoService.
"""

import io
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest
from PIL import Image

from healthmap.core.protocols import PhotoStorageService
from healthmap.services.asset_store import AssetStore
from healthmap.services.photo_service import PhotoService


@pytest.fixture
def photo_service(db_service, tmp_path):
    return PhotoService(db_service, AssetStore(str(tmp_path)))


@pytest.fixture
def image_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color="blue").save(buffer, "PNG")
    return buffer.getvalue()


def url_to_path(url):
    return Path(url2pathname(urlparse(url).path))


def test_implements_photo_storage_protocol(photo_service):
    assert isinstance(photo_service, PhotoStorageService)


def test_upload_returns_file_url(photo_service, image_bytes):
    result = photo_service.upload_photo("pet-1", image_bytes)

    assert result["success"] is True
    photo = result["photo"]
    assert photo["url"].startswith("file://")
    assert url_to_path(photo["url"]).read_bytes().startswith(b"\x89PNG")
    assert photo["created_at"]


def test_upload_for_unknown_pet_fails(photo_service, image_bytes):
    result = photo_service.upload_photo("ghost", image_bytes)

    assert result["success"] is False
    assert "ghost" in result["error"]


def test_upload_invalid_bytes_fails(photo_service):
    result = photo_service.upload_photo("pet-1", b"garbage")

    assert result["success"] is False
    assert photo_service.list_photos("pet-1") == []


def test_list_photos_newest_first(photo_service, image_bytes):
    first = photo_service.upload_photo("pet-1", image_bytes)["photo"]
    second = photo_service.upload_photo("pet-1", image_bytes)["photo"]

    ids = [p.id for p in photo_service.list_photos("pet-1")]

    assert ids == [second["id"], first["id"]]


def test_thumbnail_path(photo_service, image_bytes):
    photo = photo_service.upload_photo("pet-1", image_bytes)["photo"]

    assert Path(photo_service.thumbnail_path(photo["id"])).exists()
    assert photo_service.thumbnail_path("missing") == ""


def test_delete_photo(photo_service, image_bytes):
    photo = photo_service.upload_photo("pet-1", image_bytes)["photo"]

    assert photo_service.delete_photo(photo["id"]) == {"success": True}
    assert photo_service.list_photos("pet-1") == []
    assert not url_to_path(photo["url"]).exists()
    assert photo_service.delete_photo(photo["id"])["success"] is False
