"""
Base Repository Module.

Provides the base class for repository implementations.
Repositories handle CRUD operations for specific tables.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


class BaseRepository:
    """
    Base class for repository implementations.

    Provides connection management, transaction handling, and JSON
    serialization shared by all repositories.

    Attributes:
        _connection: The SQLite database connection (managed by DatabaseService).
    """

    def __init__(self, connection: Optional[sqlite3.Connection] = None) -> None:
        """
        Initialize the repository.

        Args:
            connection: Optional SQLite connection. If None, must be set later.
        """
        self._connection = connection

    def set_connection(self, connection: sqlite3.Connection) -> None:
        """
        Set the database connection.

        Args:
            connection: The SQLite database connection.
        """
        self._connection = connection

    def _require_connection(self) -> sqlite3.Connection:
        if not self._connection:
            raise RuntimeError("Database connection not initialized")
        return self._connection

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Context manager for safe transaction handling.

        Yields:
            The database connection within a transaction context.

        Raises:
            sqlite3.Error: If the transaction fails.
        """
        connection = self._require_connection()
        try:
            yield connection
            connection.commit()
        except Exception as e:
            connection.rollback()
            logger.error(f"Transaction rolled back due to error: {e}")
            raise

    @staticmethod
    def _serialize_json(data: Any) -> Optional[str]:
        """
        Serialize data to a JSON string. None stays None (SQL NULL).
        """
        if data is None:
            return None
        return json.dumps(data)

    @staticmethod
    def _deserialize_json(json_str: Optional[str], default: Any = None) -> Any:
        """
        Deserialize a JSON column.

        Args:
            json_str: Raw column value.
            default: Returned for NULL or unparsable values.
        """
        if not json_str:
            return default
        try:
            return json.loads(json_str)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Failed to parse JSON: {e}. Returning default.")
            return default
