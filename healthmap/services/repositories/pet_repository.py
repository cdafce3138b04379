"""
Pet Repository Module.

Handles pet records and the health map marker list stored on each pet.
The marker list is one JSON column; an empty list is stored as NULL.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from healthmap.services.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PetRepository(BaseRepository):
    """
    Repository for pets and their health map markers.
    """

    def insert_pet(self, pet_id: str, name: str) -> None:
        """
        Insert a pet or rename an existing one (Upsert).

        Args:
            pet_id: Unique pet identifier.
            name: Display name.
        """
        sql = """
            INSERT INTO pets (id, name, health_map, created_at, updated_at)
            VALUES (?, ?, NULL, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                updated_at=excluded.updated_at;
        """
        now = _now()
        with self.transaction() as conn:
            conn.execute(sql, (pet_id, name, now, now))

    def get_pet(self, pet_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a pet row.

        Returns:
            Dict with id, name, health_map (list or None), timestamps; or None.
        """
        connection = self._require_connection()
        row = connection.execute("SELECT * FROM pets WHERE id = ?", (pet_id,)).fetchone()
        if not row:
            return None
        data = dict(row)
        data["health_map"] = self._deserialize_json(data.get("health_map"))
        return data

    def get_health_map(self, pet_id: str) -> List[Dict[str, Any]]:
        """
        Returns the pet's markers in insertion order.

        Raises:
            KeyError: If the pet does not exist.
        """
        pet = self.get_pet(pet_id)
        if pet is None:
            raise KeyError(f"Pet not found: {pet_id}")
        return pet["health_map"] or []

    def upsert_marker(self, pet_id: str, marker: Dict[str, Any]) -> None:
        """
        Inserts or replaces one marker, keyed by its id.
        Read and write happen inside one transaction.

        Raises:
            KeyError: If the pet does not exist.
        """
        with self.transaction() as conn:
            markers = self._read_locked(conn, pet_id)
            for i, existing in enumerate(markers):
                if existing.get("id") == marker["id"]:
                    markers[i] = marker
                    break
            else:
                markers.append(marker)
            self._write(conn, pet_id, markers)

    def delete_marker(self, pet_id: str, marker_id: str) -> bool:
        """
        Removes one marker by id.

        Returns:
            bool: True if a marker was removed.

        Raises:
            KeyError: If the pet does not exist.
        """
        with self.transaction() as conn:
            markers = self._read_locked(conn, pet_id)
            remaining = [m for m in markers if m.get("id") != marker_id]
            self._write(conn, pet_id, remaining)
        return len(remaining) != len(markers)

    def clear_health_map(self, pet_id: str) -> None:
        """Removes all markers of a pet."""
        with self.transaction() as conn:
            cursor = conn.execute(
                "UPDATE pets SET health_map = NULL, updated_at = ? WHERE id = ?",
                (_now(), pet_id),
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Pet not found: {pet_id}")

    def _read_locked(self, conn, pet_id: str) -> List[Dict[str, Any]]:
        # BEGIN IMMEDIATE takes the write lock before reading
        if not conn.in_transaction:
            conn.execute("BEGIN IMMEDIATE")
        row = conn.execute(
            "SELECT health_map FROM pets WHERE id = ?", (pet_id,)
        ).fetchone()
        if row is None:
            raise KeyError(f"Pet not found: {pet_id}")
        return list(self._deserialize_json(row["health_map"], default=[]))

    def _write(self, conn, pet_id: str, markers: List[Dict[str, Any]]) -> None:
        conn.execute(
            "UPDATE pets SET health_map = ?, updated_at = ? WHERE id = ?",
            (self._serialize_json(markers or None), _now(), pet_id),
        )
