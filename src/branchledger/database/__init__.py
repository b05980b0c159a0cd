"""Database layer for branchledger application."""

from branchledger.database.base import Database
from branchledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
