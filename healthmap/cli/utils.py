"""
CLI Utilities Module.

Common utility functions for CLI tools.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def validate_database_path(db_path: str, allow_create: bool = False) -> bool:
    """
    Validate that a database file exists.

    Args:
        db_path: Path to the database file.
        allow_create: If True, a missing file is accepted; DatabaseService
            creates it on connect.

    Returns:
        True if valid, False otherwise.
    """
    if Path(db_path).exists():
        return True
    if allow_create:
        logger.debug(f"Database will be created: {db_path}")
        return True
    logger.error(f"Database file not found: {db_path}")
    return False


def format_marker_line(index: int, marker) -> str:
    """One-line human readable marker summary for listings."""
    note = marker.note or "No note"
    return (
        f"{index:>3}. {marker.id}  ({marker.x:.3f}, {marker.y:.3f})  "
        f"{note}  [{marker.created_date_label()}]"
    )
