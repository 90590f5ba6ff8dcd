"""
MongoDB Connector (Singleton Pattern).

Only the mongo cache backend talks to MongoDB; the file backend never
imports a client connection.
"""
from typing import Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from core.config import config
from core.logging import get_logger

logger = get_logger("database")

SNAPSHOT_COLLECTION = "category_snapshots"

_db_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def get_db() -> Database:
    """
    Returns the MongoDB database instance (Singleton).

    The client connects lazily; the first failing operation raises
    pymongo.errors.PyMongoError.
    """
    global _db_client, _database

    if _database is None:
        logger.info("Connecting to MongoDB", extra={"database": config.DATABASE_NAME})
        _db_client = MongoClient(config.MONGO_URI, serverSelectionTimeoutMS=5000)
        _database = _db_client[config.DATABASE_NAME]

    return _database


def get_snapshot_collection(name: str = SNAPSHOT_COLLECTION) -> Collection:
    """Collection holding cached category snapshots."""
    return get_db()[name]


def close_db() -> None:
    """Close the database connection."""
    global _db_client, _database

    if _db_client is None:
        return
    try:
        _db_client.close()
        logger.info("Database connection closed")
    except PyMongoError:
        logger.error("Error closing database connection", exc_info=True)
    finally:
        _db_client = None
        _database = None
