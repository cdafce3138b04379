"""
Tests for the AssetStore service.
"""

import io
from pathlib import Path

import pytest
from PIL import Image

from healthmap.services.asset_store import THUMBNAIL_SIZE, AssetStore


@pytest.fixture
def asset_store(tmp_path):
    """Creates an AssetStore instance with temporary directory."""
    return AssetStore(str(tmp_path))


def png_bytes(size=(800, 600), color="red", mode="RGB"):
    buffer = io.BytesIO()
    Image.new(mode, size, color=color).save(buffer, "PNG")
    return buffer.getvalue()


def test_asset_store_creates_directories(tmp_path):
    """Test AssetStore creates necessary directories on initialization."""
    store = AssetStore(str(tmp_path))

    assert store.images_dir == tmp_path / "assets" / "images"
    assert store.images_dir.is_dir()
    assert store.thumbs_dir.is_dir()
    assert store.trash_dir.is_dir()


def test_get_pet_dir(asset_store):
    assert asset_store.get_pet_dir("pet-1") == asset_store.images_dir / "pets" / "pet-1"
    assert (
        asset_store.get_pet_dir("pet-1", is_thumbnail=True)
        == asset_store.thumbs_dir / "pets" / "pet-1"
    )


def test_store_image_bytes(asset_store):
    """Test storing bytes writes the image and a bounded thumbnail."""
    image_id, rel_img, rel_thumb, (width, height) = asset_store.store_image_bytes(
        "pet-1", png_bytes()
    )

    assert (width, height) == (800, 600)
    assert rel_img == f"assets/images/pets/pet-1/{image_id}.png"
    assert rel_thumb == f"assets/thumbnails/pets/pet-1/{image_id}.png"

    with Image.open(asset_store.absolute_path(rel_thumb)) as thumb:
        assert thumb.width <= THUMBNAIL_SIZE[0]
        assert thumb.height <= THUMBNAIL_SIZE[1]


def test_store_converts_palette_images(asset_store):
    _, rel_img, _, _ = asset_store.store_image_bytes(
        "pet-1", png_bytes(size=(10, 10), mode="P", color=3)
    )

    with Image.open(asset_store.absolute_path(rel_img)) as img:
        assert img.mode == "RGBA"


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_store_rejects_invalid_bytes(asset_store, data):
    with pytest.raises(ValueError):
        asset_store.store_image_bytes("pet-1", data)

    pet_dir = asset_store.get_pet_dir("pet-1")
    assert not pet_dir.exists() or list(pet_dir.iterdir()) == []


def test_delete_files_moves_to_trash(asset_store):
    """Test deleting moves both files into the trash without name clashes."""
    _, rel_img, rel_thumb, _ = asset_store.store_image_bytes("pet-1", png_bytes())

    asset_store.delete_files(rel_img, rel_thumb)

    assert not asset_store.absolute_path(rel_img).exists()
    assert not asset_store.absolute_path(rel_thumb).exists()
    trashed = [p.name for p in Path(asset_store.trash_dir).rglob("*.png")]
    assert len(trashed) == 2
