"""Database layer for charterdesk."""

from charterdesk.database.base import Database
from charterdesk.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
