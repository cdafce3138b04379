"""
Asset Store Module.

Manages filesystem storage for pet photos and their thumbnails.
"""

import io
import logging
import shutil
import time
import uuid
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (256, 256)


class AssetStore:
    """
    Stores pet images under a data root with deterministic paths.

    Layout::

        <root>/assets/images/pets/<pet_id>/<uuid>.png
        <root>/assets/thumbnails/pets/<pet_id>/<uuid>.png
        <root>/assets/.trash/<timestamp>/
    """

    def __init__(self, project_root: str) -> None:
        """
        Initialize the asset store.

        Args:
            project_root: Directory that holds the ``assets`` folder.
        """
        self.project_root = Path(project_root)
        self.assets_dir = self.project_root / "assets"
        self.images_dir = self.assets_dir / "images"
        self.thumbs_dir = self.assets_dir / "thumbnails"
        self.trash_dir = self.assets_dir / ".trash"

        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for path in [self.images_dir, self.thumbs_dir, self.trash_dir]:
            path.mkdir(parents=True, exist_ok=True)

    def get_pet_dir(self, pet_id: str, is_thumbnail: bool = False) -> Path:
        """
        Returns the directory for a pet's images.
        Example: assets/images/pets/<pet_id>/
        """
        base_dir = self.thumbs_dir if is_thumbnail else self.images_dir
        return base_dir / "pets" / pet_id

    def store_image_bytes(
        self, pet_id: str, data: bytes
    ) -> Tuple[str, str, Optional[str], Tuple[int, int]]:
        """
        Validates and stores encoded image bytes:
        1. Generates a unique ID.
        2. Decodes with Pillow (rejects non-images, fixes EXIF orientation).
        3. Saves the image as PNG and a thumbnail.

        Args:
            pet_id: Owning pet.
            data: Encoded image bytes.

        Returns:
            (image_id, image_rel_path, thumb_rel_path, (width, height))

        Raises:
            ValueError: If the bytes are not a decodable image.
            OSError: If the files cannot be written.
        """
        if not data:
            raise ValueError("Image data is empty")

        image_id = str(uuid.uuid4())
        img_dir = self.get_pet_dir(pet_id)
        thumb_dir = self.get_pet_dir(pet_id, is_thumbnail=True)
        img_dir.mkdir(parents=True, exist_ok=True)
        thumb_dir.mkdir(parents=True, exist_ok=True)

        filename = f"{image_id}.png"
        target_img_path = img_dir / filename
        target_thumb_path = thumb_dir / filename

        try:
            with Image.open(io.BytesIO(data)) as img:
                img = ImageOps.exif_transpose(img)
                if img.mode not in ("RGB", "RGBA"):
                    img = img.convert("RGBA")

                img.save(target_img_path, "PNG")
                width, height = img.size

                img.thumbnail(THUMBNAIL_SIZE)
                img.save(target_thumb_path, "PNG")
        except UnidentifiedImageError as e:
            raise ValueError(f"Not a valid image: {e}") from e
        except Exception as e:
            logger.error(f"Failed to store image for pet {pet_id}: {e}")
            # Cleanup if partial write occurred
            target_img_path.unlink(missing_ok=True)
            target_thumb_path.unlink(missing_ok=True)
            raise

        rel_img = target_img_path.relative_to(self.project_root).as_posix()
        rel_thumb = target_thumb_path.relative_to(self.project_root).as_posix()
        logger.debug(f"Stored image {image_id} ({width}x{height}) for pet {pet_id}")
        return image_id, rel_img, rel_thumb, (width, height)

    def absolute_path(self, rel_path: str) -> Path:
        return self.project_root / rel_path

    def delete_files(self, image_rel_path: str, thumb_rel_path: Optional[str] = None) -> None:
        """
        Moves files to the trash folder instead of deleting them.
        """
        trash_subdir = self.trash_dir / str(int(time.time()))
        trash_subdir.mkdir(exist_ok=True)

        for prefix, rel_path in (("img", image_rel_path), ("thumb", thumb_rel_path)):
            if not rel_path:
                continue
            full_path = self.project_root / rel_path
            if full_path.exists():
                # Prefix avoids collisions: image and thumbnail share the uuid name
                shutil.move(str(full_path), str(trash_subdir / f"{prefix}_{full_path.name}"))

        logger.info(f"Moved images to trash: {image_rel_path}")
