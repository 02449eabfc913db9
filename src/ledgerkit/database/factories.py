"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from ledgerkit.database.sqlalchemy_db import SQLAlchemyDatabase

DEFAULT_LOCK_TIMEOUT = 5.0


def create_sqlite_database(
    database_path: Optional[str] = None, lock_timeout: Optional[float] = None
) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks LEDGERKIT_DB_PATH
            environment variable, then defaults to ~/.ledgerkit/ledgerkit.db
        lock_timeout: Seconds to wait on a locked database. If None, checks
            LEDGERKIT_LOCK_TIMEOUT, then defaults to 5 seconds.

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("LEDGERKIT_DB_PATH")

    if database_path is None:
        # Default to ~/.ledgerkit/ledgerkit.db
        home = Path.home()
        db_dir = home / ".ledgerkit"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "ledgerkit.db")

    if lock_timeout is None:
        lock_timeout = float(os.environ.get("LEDGERKIT_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT))

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url, lock_timeout=lock_timeout)
