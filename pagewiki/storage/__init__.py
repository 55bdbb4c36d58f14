from pagewiki.storage.catalog import QueryId, load_catalog
from pagewiki.storage.pool import ConnectionPool, PoolTimeout
from pagewiki.storage.service import StorageService

__all__ = [
    "QueryId",
    "load_catalog",
    "ConnectionPool",
    "PoolTimeout",
    "StorageService",
]
