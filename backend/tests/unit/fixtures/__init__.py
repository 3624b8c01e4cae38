from .app import create_minimal_app
from .database import connect_test_db, clean_db_collections, get_test_db_name

__all__ = [
    "create_minimal_app",
    "connect_test_db",
    "clean_db_collections",
    "get_test_db_name",
]
