"""
Photo Repository Module.

Handles database rows for stored pet photos.
"""

import logging
from typing import Any, Dict, List, Optional

from healthmap.services.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PhotoRepository(BaseRepository):
    """
    Repository for pet photo rows.
    """

    def insert(self, row: Dict[str, Any]) -> None:
        """
        Insert a photo row.

        Args:
            row: id, pet_id, path, thumb_path, width, height, created_at.
        """
        sql = """
            INSERT INTO pet_photos (id, pet_id, path, thumb_path,
                                    width, height, created_at)
            VALUES (:id, :pet_id, :path, :thumb_path, :width, :height, :created_at)
        """
        with self.transaction() as conn:
            conn.execute(sql, row)

    def get(self, photo_id: str) -> Optional[Dict[str, Any]]:
        connection = self._require_connection()
        row = connection.execute(
            "SELECT * FROM pet_photos WHERE id = ?", (photo_id,)
        ).fetchone()
        return dict(row) if row else None

    def list_for_pet(self, pet_id: str) -> List[Dict[str, Any]]:
        """
        Photos of a pet, newest first.
        """
        connection = self._require_connection()
        cursor = connection.execute(
            "SELECT * FROM pet_photos WHERE pet_id = ? "
            "ORDER BY created_at DESC, rowid DESC",
            (pet_id,),
        )
        return [dict(row) for row in cursor.fetchall()]

    def delete(self, photo_id: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM pet_photos WHERE id = ?", (photo_id,))
