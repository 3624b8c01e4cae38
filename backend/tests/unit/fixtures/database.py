import os
import mongomock
import pytest
from loguru import logger
from mongoengine import connect, disconnect_all

from models.bill import Bill
from models.company import Company


def get_test_db_name() -> str:
    """
    Generate a unique database name for parallel test execution.
    Uses pytest worker ID (xdist) if available, otherwise defaults to 'test_db'

    Returns:
        str: Unique test database name
    """
    worker_id = os.environ.get("PYTEST_XDIST_WORKER", "")
    db_name = f"test_db_{worker_id}" if worker_id else "test_db"
    logger.info(f"Using test database name: {db_name}")
    return db_name


def connect_test_db():
    """
    Connect the default MongoEngine alias to an in-memory mongomock client.

    Returns:
        The mongomock client
    """
    disconnect_all()
    logger.debug("Disconnected from any existing connections")

    return connect(
        get_test_db_name(),
        host="mongodb://localhost",
        alias="default",
        mongo_client_class=mongomock.MongoClient,
    )


def clean_db_collections(collections_to_clean=None):
    """
    Helper function to clean specified collections.
    If no collections specified, cleans all collections.

    Args:
        collections_to_clean: Optional list of collection names to clean
    """
    all_collections = {
        "bills": Bill._get_collection(),
        "companies": Company._get_collection(),
    }

    if collections_to_clean:
        collections = {
            name: coll
            for name, coll in all_collections.items()
            if name in collections_to_clean
        }
    else:
        collections = all_collections

    for name, collection in collections.items():
        result = collection.delete_many({})
        logger.debug(f"Deleted {result.deleted_count} documents from {name}")


@pytest.fixture(scope="session", autouse=True)
def setup_default_connection():
    """
    Ensure default connection is available throughout the test session.

    Yields:
        mongomock client
    """
    logger.info("Setting up session-level database connection")
    conn = connect_test_db()

    yield conn

    logger.info("Cleaning up session-level database connection")
    disconnect_all()


@pytest.fixture(autouse=True)
def clean_collections():
    """Empty every collection after each test."""
    yield
    clean_db_collections()


# Export all needed items
__all__ = [
    "get_test_db_name",
    "connect_test_db",
    "clean_db_collections",
    "setup_default_connection",
    "clean_collections",
]
