"""
Storage layer for the calling shell around the engine.

DuckDB holds the replacement price quote cache and the price seeding job
manifests. The assessment engine never touches storage.
"""

from functools import lru_cache

from opterra.config import get_settings

from .base import StorageBackend
from .duckdb_storage import DuckDBStorage, StorageError


@lru_cache
def get_storage() -> StorageBackend:
    """
    Get cached storage backend instance (singleton).

    Returns:
        StorageBackend implementation instance
    """
    settings = get_settings()
    return DuckDBStorage(db_path=settings.db_path)


__all__ = [
    "StorageBackend",
    "DuckDBStorage",
    "StorageError",
    "get_storage",
]
