"""
Photo Service Module.

Local implementation of the photo storage service: orchestrates database
rows and filesystem storage for pet photos. Exported health maps arrive
here like any other upload.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from healthmap.core.photo import Photo
from healthmap.services.asset_store import AssetStore
from healthmap.services.db_service import DatabaseService

logger = logging.getLogger(__name__)


class PhotoService:
    """
    Stores uploaded pet photos and exposes them as file URLs.
    """

    def __init__(self, db_service: DatabaseService, asset_store: AssetStore) -> None:
        """
        Args:
            db_service: Database holding photo rows.
            asset_store: Filesystem storage for image files.
        """
        self._db = db_service
        self._store = asset_store

    def _to_photo(self, row: Dict[str, Any]) -> Photo:
        url = self._store.absolute_path(row["path"]).resolve().as_uri()
        return Photo(id=row["id"], url=url, created_at=row["created_at"])

    def upload_photo(self, pet_id: str, data: bytes) -> Dict[str, Any]:
        """
        Stores image bytes for a pet.

        Returns:
            Dict: ``{"success": True, "photo": {...}}`` or
            ``{"success": False, "error": str}``.
        """
        if self._db.get_pet(pet_id) is None:
            return {"success": False, "error": f"Pet not found: {pet_id}"}

        try:
            image_id, rel_img, rel_thumb, (width, height) = (
                self._store.store_image_bytes(pet_id, data)
            )
        except ValueError as e:
            return {"success": False, "error": str(e)}
        except OSError as e:
            logger.error(f"Failed to write photo for pet {pet_id}: {e}")
            return {"success": False, "error": "Upload failed."}

        row = {
            "id": image_id,
            "pet_id": pet_id,
            "path": rel_img,
            "thumb_path": rel_thumb,
            "width": width,
            "height": height,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self._db.insert_photo(row)
        except Exception as e:
            logger.error(f"Failed to record photo for pet {pet_id}: {e}")
            self._store.delete_files(rel_img, rel_thumb)
            return {"success": False, "error": "Upload failed."}

        photo = self._to_photo(row)
        logger.info(f"Stored photo {photo.id} for pet {pet_id}")
        return {"success": True, "photo": photo.to_dict()}

    def list_photos(self, pet_id: str) -> List[Photo]:
        """Photos of a pet, newest first."""
        return [self._to_photo(row) for row in self._db.get_photos_for_pet(pet_id)]

    def thumbnail_path(self, photo_id: str) -> str:
        """Absolute path of a photo's thumbnail, or '' if unknown."""
        row = self._db.get_photo(photo_id)
        if not row or not row.get("thumb_path"):
            return ""
        return str(self._store.absolute_path(row["thumb_path"]))

    def delete_photo(self, photo_id: str) -> Dict[str, Any]:
        """
        Deletes a photo row and moves its files to the trash.
        """
        row = self._db.get_photo(photo_id)
        if row is None:
            return {"success": False, "error": f"Photo not found: {photo_id}"}
        self._db.delete_photo(photo_id)
        self._store.delete_files(row["path"], row.get("thumb_path"))
        return {"success": True}
