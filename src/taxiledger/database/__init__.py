"""Database layer for taxiledger application."""

from taxiledger.database.base import Database
from taxiledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
