"""Database session management for async SQLAlchemy.

Provides the process-wide engine and session maker, table creation and
seeding of the default category list.
"""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel, select

from devlog.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: list[dict[str, str]] = [
    {"id": "web-development", "name": "Web Development", "description": "Web development posts"},
    {"id": "blockchain", "name": "Blockchain", "description": "Blockchain and cryptocurrency technology"},
    {"id": "cryptography", "name": "Cryptography", "description": "Cryptography and security"},
    {"id": "ai-ml", "name": "AI/ML", "description": "Artificial intelligence and machine learning"},
    {"id": "devops", "name": "DevOps", "description": "Operations and infrastructure"},
    {"id": "tutorial", "name": "Tutorial", "description": "Technical tutorials and guides"},
    {"id": "review", "name": "Review", "description": "Technology reviews and analysis"},
]


# Global engine and session maker
_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Get or create the async database engine.

    Args:
        settings: Optional settings. If None, uses global settings.

    Returns:
        The async SQLAlchemy engine.
    """
    global _engine

    try:
        if _engine is None:
            settings = settings or get_settings()

            logger.info("Creating async database engine")

            engine_kwargs = {}
            if not settings.database_url.startswith("sqlite"):
                engine_kwargs = {"pool_size": 10, "max_overflow": 20}

            _engine = create_async_engine(
                settings.database_url,
                echo=settings.log_level == "DEBUG",
                pool_pre_ping=True,
                **engine_kwargs,
            )

            logger.info("Database engine created successfully")

        return _engine

    except Exception as e:
        logger.error(f"Failed to create database engine: {e}", exc_info=True)
        raise


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_maker(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Get or create the async session maker.

    Args:
        settings: Optional settings. If None, uses global settings.

    Returns:
        The async session maker.
    """
    global _async_session_maker

    try:
        if _async_session_maker is None:
            _async_session_maker = create_session_maker(get_engine(settings))
            logger.info("Session maker created successfully")

        return _async_session_maker

    except Exception as e:
        logger.error(f"Failed to create session maker: {e}", exc_info=True)
        raise


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create all database tables.

    In production, consider using Alembic for migrations.
    """
    try:
        # Import models to ensure they're registered with SQLModel metadata
        from devlog.db import models  # noqa: F401

        logger.info("Creating database tables...")

        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

        logger.info("Database tables created successfully")

    except Exception as e:
        logger.error(f"Failed to create database tables: {e}", exc_info=True)
        raise


async def seed_categories(session_maker: async_sessionmaker[AsyncSession]) -> int:
    """Insert any default category that does not exist yet.

    Returns:
        The number of categories inserted.
    """
    from devlog.db.models import Category

    async with session_maker() as session:
        try:
            result = await session.execute(select(Category.id))
            existing = set(result.scalars().all())

            missing = [item for item in DEFAULT_CATEGORIES if item["id"] not in existing]
            for item in missing:
                session.add(Category(slug=item["id"], **item))
            await session.commit()

            if missing:
                logger.info(f"Seeded {len(missing)} default categories")
            return len(missing)

        except Exception as e:
            logger.error(f"Error seeding categories: {e}", exc_info=True)
            await session.rollback()
            raise


async def init_db(settings: Settings | None = None) -> None:
    """Create tables and seed the default categories.

    Args:
        settings: Optional settings. If None, uses global settings.
    """
    try:
        await create_all_tables(get_engine(settings))
        await seed_categories(get_session_maker(settings))
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise


async def close_db() -> None:
    """Close the database engine and all connections."""
    global _engine, _async_session_maker

    try:
        if _engine is not None:
            logger.info("Closing database engine...")
            await _engine.dispose()
            _engine = None
            _async_session_maker = None
            logger.info("Database engine closed")

    except Exception as e:
        logger.error(f"Error closing database engine: {e}", exc_info=True)
        raise
