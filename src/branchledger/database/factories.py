"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from branchledger.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "BRANCHLEDGER_DB_PATH"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks BRANCHLEDGER_DB_PATH
            environment variable, then defaults to ~/.branchledger/branchledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        # Default to ~/.branchledger/branchledger.db
        home = Path.home()
        db_dir = home / ".branchledger"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "branchledger.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
