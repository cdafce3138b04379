"""
Path Utility Module.
Manages the per-user data directory that holds the database, photos and logs.
"""

import os
import sys
from pathlib import Path

APP_DIR_NAME = "PetHealthMap"


def get_user_data_path(filename: str = "") -> str:
    """
    Returns the absolute path to a file in the user's application data directory.
    Creates the directory if it doesn't exist.

    Args:
        filename: Optional filename to append to the directory path.

    Returns:
        str: Absolute path to the user data directory or file.
    """
    if sys.platform == "win32":
        base_dir = Path(
            os.environ.get("APPDATA", os.path.expanduser("~\\AppData\\Roaming"))
        )
    elif sys.platform == "darwin":
        base_dir = Path(os.path.expanduser("~/Library/Application Support"))
    else:
        base_dir = Path(
            os.environ.get("XDG_DATA_HOME", os.path.expanduser("~/.local/share"))
        )

    data_dir = base_dir / APP_DIR_NAME
    data_dir.mkdir(parents=True, exist_ok=True)

    if filename:
        return str(data_dir / filename)
    return str(data_dir)
