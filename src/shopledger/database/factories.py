"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from shopledger.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks SHOPLEDGER_DB_PATH
            environment variable, then defaults to ~/.shopledger/shopledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("SHOPLEDGER_DB_PATH")

    if database_path is None:
        # Default to ~/.shopledger/shopledger.db
        home = Path.home()
        db_dir = home / ".shopledger"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "shopledger.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def create_database(database_url: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a database instance from a SQLAlchemy URL.

    Args:
        database_url: SQLAlchemy URL. If None, checks SHOPLEDGER_DATABASE_URL,
            then falls back to the SQLite database of create_sqlite_database

    Returns:
        SQLAlchemyDatabase instance
    """
    if database_url is None:
        database_url = os.environ.get("SHOPLEDGER_DATABASE_URL")

    if database_url is None:
        return create_sqlite_database()

    return SQLAlchemyDatabase(database_url)
