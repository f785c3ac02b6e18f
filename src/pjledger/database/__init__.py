"""Database layer for pjledger."""

from pjledger.database.base import Database
from pjledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
