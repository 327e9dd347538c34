"""Category persistence implementations."""

from devlog.strategies.stores.sql import SqlCategoryCatalog, SqlCategoryTagStore

__all__ = ["SqlCategoryCatalog", "SqlCategoryTagStore"]
