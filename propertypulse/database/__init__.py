"""Database package."""

from .connection import get_db, init_db, init_engine, dispose_engine, check_db_connection

__all__ = [
    "get_db",
    "init_db",
    "init_engine",
    "dispose_engine",
    "check_db_connection",
]
