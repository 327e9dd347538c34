"""SQL-backed category catalog and tag store.

Both classes take an ``async_sessionmaker`` so the same code runs against
PostgreSQL in production and SQLite in tests.
"""

import logging

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import col, select

from devlog.db.models import Category, Post, PostCategory
from devlog.interfaces.store import (
    MAX_TAG_SELECTIONS,
    AutoTagResult,
    BaseCategoryCatalog,
    BaseCategoryTagStore,
    CategoryInfo,
    PostInfo,
    PostNotFoundError,
    TagSelection,
    TagStoreError,
)

logger = logging.getLogger(__name__)



class SqlCategoryCatalog(BaseCategoryCatalog):
    """Category and post reads through SQLAlchemy."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def list_categories(self) -> list[CategoryInfo]:
        async with self._session_maker() as session:
            result = await session.execute(select(Category).order_by(col(Category.name)))
            return [
                CategoryInfo(
                    id=category.id,
                    name=category.name,
                    slug=category.slug,
                    description=category.description,
                )
                for category in result.scalars().all()
            ]

    async def get_post(self, post_id: str) -> PostInfo | None:
        async with self._session_maker() as session:
            post = await session.get(Post, post_id)
            if post is None:
                return None
            return PostInfo(id=post.id, title=post.title, content=post.content)

    async def post_category_ids(self, post_id: str) -> list[str]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(PostCategory.category_id).where(PostCategory.post_id == post_id)
            )
            return sorted(result.scalars().all())


class SqlCategoryTagStore(BaseCategoryTagStore):
    """Transactional writes to ``post_categories``."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @staticmethod
    def _validate(selections: list[TagSelection]) -> list[TagSelection]:
        if not selections:
            raise TagStoreError("No categories were selected")
        if len(selections) > MAX_TAG_SELECTIONS:
            raise TagStoreError(f"At most {MAX_TAG_SELECTIONS} categories can be applied at once")

        unique: dict[str, TagSelection] = {}
        for selection in selections:
            if not selection.category_id.strip():
                raise TagStoreError("Category id is required")
            unique.setdefault(selection.category_id, selection)
        return list(unique.values())

    async def apply_category_tags(
        self,
        post_id: str,
        selections: list[TagSelection],
        replace_existing: bool = False,
    ) -> AutoTagResult:
        selections = self._validate(selections)

        async with self._session_maker() as session:
            try:
                async with session.begin():
                    if await session.get(Post, post_id) is None:
                        raise PostNotFoundError(f"Post '{post_id}' not found")

                    requested = [selection.category_id for selection in selections]
                    result = await session.execute(
                        select(Category.id).where(col(Category.id).in_(requested))
                    )
                    found = set(result.scalars().all())
                    unknown = [category_id for category_id in requested if category_id not in found]
                    if unknown:
                        raise TagStoreError(f"Unknown categories: {', '.join(unknown)}")

                    result = await session.execute(
                        select(PostCategory).where(PostCategory.post_id == post_id)
                    )
                    current = list(result.scalars().all())

                    removed = [pc for pc in current if replace_existing or pc.is_ai_suggested]
                    removed_ids = [pc.category_id for pc in removed]
                    kept = {pc.category_id for pc in current} - set(removed_ids)
                    for assignment in removed:
                        await session.delete(assignment)
                    await session.flush()

                    added: list[str] = []
                    for selection in selections:
                        # A manual tag already covers this category
                        if selection.category_id in kept:
                            continue
                        session.add(
                            PostCategory(
                                post_id=post_id,
                                category_id=selection.category_id,
                                is_ai_suggested=True,
                                confidence=selection.confidence,
                            )
                        )
                        added.append(selection.category_id)

            except TagStoreError:
                raise
            except SQLAlchemyError as e:
                logger.error(f"Failed to apply category tags to post {post_id}: {e}", exc_info=True)
                raise

        logger.info(f"Applied {len(added)} AI category tag(s) to post {post_id}, removed {len(removed_ids)}")

        return AutoTagResult(
            success=True,
            post_id=post_id,
            added=added,
            removed=removed_ids,
            final=sorted(kept | set(added)),
        )

    async def remove_post_categories(
        self,
        post_id: str,
        category_ids: list[str],
        only_ai_suggested: bool = False,
    ) -> int:
        if not category_ids:
            return 0

        statement = delete(PostCategory).where(
            col(PostCategory.post_id) == post_id,
            col(PostCategory.category_id).in_(category_ids),
        )
        if only_ai_suggested:
            statement = statement.where(col(PostCategory.is_ai_suggested).is_(True))

        async with self._session_maker() as session:
            try:
                result = await session.execute(statement)
                removed = result.rowcount
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Failed to remove categories from post {post_id}: {e}", exc_info=True)
                await session.rollback()
                raise

        logger.info(f"Removed {removed} category tag(s) from post {post_id}")
        return removed
