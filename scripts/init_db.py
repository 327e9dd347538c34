"""Database initialization script.

Creates the post and category tables and seeds the default categories.

Usage:
    python -m scripts.init_db
    or
    python scripts/init_db.py (after pip install -e .)
"""

import asyncio

from devlog.core.config import get_settings
from devlog.db.session import close_db, init_db


async def main() -> None:
    """Initialize the database."""
    settings = get_settings()
    try:
        await init_db(settings)
        print("Database initialized successfully!")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
