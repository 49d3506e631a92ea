"""Remote store implementations for the property catalog."""
from app.store.base import CatalogStore
from app.store.sql_store import SqlCatalogStore

__all__ = ["CatalogStore", "SqlCatalogStore"]
