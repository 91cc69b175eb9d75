"""
Path utilities for ttdraw.
"""

import os
from pathlib import Path


def get_data_dir() -> Path:
    """
    Get the data directory for storing the database.

    Returns:
        - $TTDRAW_DATA_DIR when set
        - otherwise .ttdraw/ in the current working directory
    """
    override = os.environ.get("TTDRAW_DATA_DIR")
    data_dir = Path(override) if override else Path.cwd() / ".ttdraw"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_default_db_path() -> Path:
    """Default SQLite database file."""
    return get_data_dir() / "ttdraw.sqlite"
