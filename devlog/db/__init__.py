"""Database models and session management."""

from devlog.db.models import Category, Post, PostCategory
from devlog.db.session import close_db, create_all_tables, get_session_maker, init_db

__all__ = [
    "Category",
    "Post",
    "PostCategory",
    "close_db",
    "create_all_tables",
    "get_session_maker",
    "init_db",
]
