"""
Database Service Module.
Provides the SQLite storage behind the local marker persistence service.

The pet record keeps its health map as one JSON column, mirroring how the
pet-record subsystem stores it. This service delegates table access to
repository classes and implements the MarkerPersistenceService contract.
"""

import logging
import sqlite3
import threading
from typing import Any, Dict, List, Optional

from healthmap.services.repositories import PetRepository, PhotoRepository

logger = logging.getLogger(__name__)


class DatabaseService:
    """
    Handles all raw interactions with the SQLite database.

    Safe to call from the UI thread and the worker thread: the connection is
    shared and every public call is serialized with a lock.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        """
        Args:
            db_path: Path to the database file.
                     Defaults to :memory: for testing.
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

        self._pet_repo = PetRepository()
        self._photo_repo = PhotoRepository()

        logger.info(f"DatabaseService initialized with path: {self.db_path}")

    def connect(self) -> None:
        """Establishes connection to the database."""
        try:
            self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
            self._connection.execute("PRAGMA foreign_keys = ON;")
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode=WAL;")
                logger.debug("WAL mode enabled for database.")
            self._connection.row_factory = sqlite3.Row
            logger.debug("Database connection established.")

            self._init_schema()

            self._pet_repo.set_connection(self._connection)
            self._photo_repo.set_connection(self._connection)
        except sqlite3.Error as e:
            logger.critical(f"Failed to connect to database: {e}")
            raise

    def close(self) -> None:
        """Closes the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.debug("Database connection closed.")

    def _init_schema(self) -> None:
        """Creates the tables if they don't exist."""
        schema_sql = """
        CREATE TABLE IF NOT EXISTS pets (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            health_map JSON,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS pet_photos (
            id TEXT PRIMARY KEY,
            pet_id TEXT NOT NULL,
            path TEXT NOT NULL,
            thumb_path TEXT,
            width INTEGER,
            height INTEGER,
            created_at TEXT,
            FOREIGN KEY(pet_id) REFERENCES pets(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_pet_photos_pet ON pet_photos(pet_id);
        """
        try:
            self._connection.executescript(schema_sql)
            self._connection.commit()
        except sqlite3.Error as e:
            logger.critical(f"Schema initialization failed: {e}")
            raise

    # --- Pets --------------------------------------------------------------

    def insert_pet(self, pet_id: str, name: str) -> None:
        with self._lock:
            self._pet_repo.insert_pet(pet_id, name)

    def get_pet(self, pet_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._pet_repo.get_pet(pet_id)

    # --- MarkerPersistenceService -----------------------------------------

    def save_marker(self, pet_id: str, marker: Dict[str, Any]) -> Dict[str, Any]:
        """
        Upserts one marker into the pet's health map.

        Returns:
            Dict: ``{"success": bool, "error"?: str}``.
        """
        try:
            with self._lock:
                self._pet_repo.upsert_marker(pet_id, marker)
        except KeyError as e:
            return {"success": False, "error": str(e)}
        except sqlite3.Error as e:
            logger.error(f"Failed to save marker for pet {pet_id}: {e}")
            return {"success": False, "error": "Failed to save marker."}
        return {"success": True}

    def delete_marker(self, pet_id: str, marker_id: str) -> Dict[str, Any]:
        """
        Removes one marker from the pet's health map.
        Deleting an id that is already gone counts as success.
        """
        try:
            with self._lock:
                self._pet_repo.delete_marker(pet_id, marker_id)
        except KeyError as e:
            return {"success": False, "error": str(e)}
        except sqlite3.Error as e:
            logger.error(f"Failed to delete marker for pet {pet_id}: {e}")
            return {"success": False, "error": "Failed to delete marker."}
        return {"success": True}

    def clear_markers(self, pet_id: str) -> Dict[str, Any]:
        try:
            with self._lock:
                self._pet_repo.clear_health_map(pet_id)
        except KeyError as e:
            return {"success": False, "error": str(e)}
        except sqlite3.Error as e:
            logger.error(f"Failed to clear health map for pet {pet_id}: {e}")
            return {"success": False, "error": "Failed to clear health map."}
        return {"success": True}

    def get_markers(self, pet_id: str) -> List[Dict[str, Any]]:
        """
        Returns the pet's markers, or an empty list for an unknown pet.
        """
        with self._lock:
            try:
                return self._pet_repo.get_health_map(pet_id)
            except KeyError:
                logger.warning(f"No pet record for {pet_id}; health map is empty.")
                return []

    # --- Photos ------------------------------------------------------------

    def insert_photo(self, row: Dict[str, Any]) -> None:
        with self._lock:
            self._photo_repo.insert(row)

    def get_photo(self, photo_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._photo_repo.get(photo_id)

    def get_photos_for_pet(self, pet_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return self._photo_repo.list_for_pet(pet_id)

    def delete_photo(self, photo_id: str) -> None:
        with self._lock:
            self._photo_repo.delete(photo_id)
