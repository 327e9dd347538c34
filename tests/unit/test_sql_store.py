"""Unit tests for the SQL category catalog and tag store, backed by SQLite."""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import select

from devlog.db.models import Category, Post, PostCategory
from devlog.db.session import DEFAULT_CATEGORIES, create_all_tables, create_session_maker, seed_categories
from devlog.interfaces.store import PostNotFoundError, TagSelection, TagStoreError
from devlog.strategies.stores import SqlCategoryCatalog, SqlCategoryTagStore


@pytest.fixture
def session_maker(tmp_path):
    """Session maker bound to a fresh SQLite file with seeded categories and one post."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'devlog.db'}", poolclass=NullPool)
    maker = create_session_maker(engine)

    async def setup():
        await create_all_tables(engine)
        await seed_categories(maker)
        async with maker() as session:
            session.add(Post(id="post-1", title="Docker tips", slug="docker-tips", content="Body"))
            session.add(PostCategory(post_id="post-1", category_id="tutorial", is_ai_suggested=False))
            session.add(
                PostCategory(post_id="post-1", category_id="review", is_ai_suggested=True, confidence=0.8)
            )
            await session.commit()

    asyncio.run(setup())
    yield maker
    asyncio.run(engine.dispose())


async def assignments(maker, post_id="post-1"):
    async with maker() as session:
        result = await session.execute(select(PostCategory).where(PostCategory.post_id == post_id))
        return {pc.category_id: pc.is_ai_suggested for pc in result.scalars().all()}


# =============================================================================
# Catalog Tests
# =============================================================================


class TestSqlCategoryCatalog:
    def test_seeding_is_idempotent(self, session_maker):
        assert asyncio.run(seed_categories(session_maker)) == 0

    def test_list_categories_sorted_by_name(self, session_maker):
        catalog = SqlCategoryCatalog(session_maker)

        categories = asyncio.run(catalog.list_categories())

        assert len(categories) == len(DEFAULT_CATEGORIES)
        assert [c.name for c in categories] == sorted(c.name for c in categories)
        assert {c.id for c in categories} >= {"devops", "ai-ml"}

    def test_get_post(self, session_maker):
        catalog = SqlCategoryCatalog(session_maker)

        post = asyncio.run(catalog.get_post("post-1"))

        assert post.title == "Docker tips"
        assert asyncio.run(catalog.get_post("missing")) is None

    def test_post_category_ids(self, session_maker):
        catalog = SqlCategoryCatalog(session_maker)
        assert asyncio.run(catalog.post_category_ids("post-1")) == ["review", "tutorial"]


# =============================================================================
# Tag Store Tests
# =============================================================================


class TestSqlCategoryTagStore:
    """Test suite for SqlCategoryTagStore."""

    @pytest.fixture
    def store(self, session_maker):
        return SqlCategoryTagStore(session_maker)

    def test_replaces_ai_tags_and_keeps_manual_ones(self, store, session_maker):
        selections = [
            TagSelection(category_id="devops", confidence=0.9),
            TagSelection(category_id="tutorial", confidence=0.75),
        ]

        result = asyncio.run(store.apply_category_tags("post-1", selections))

        assert result.success
        assert result.added == ["devops"]
        assert result.removed == ["review"]
        assert result.final == ["devops", "tutorial"]
        assert asyncio.run(assignments(session_maker)) == {"devops": True, "tutorial": False}

    def test_replace_existing_removes_manual_tags(self, store, session_maker):
        selections = [TagSelection(category_id="devops", confidence=0.9)]

        result = asyncio.run(store.apply_category_tags("post-1", selections, replace_existing=True))

        assert sorted(result.removed) == ["review", "tutorial"]
        assert asyncio.run(assignments(session_maker)) == {"devops": True}

    def test_duplicate_selections_are_collapsed(self, store):
        selections = [
            TagSelection(category_id="devops", confidence=0.9),
            TagSelection(category_id="devops", confidence=0.8),
        ]

        result = asyncio.run(store.apply_category_tags("post-1", selections))

        assert result.added == ["devops"]

    def test_missing_post(self, store):
        with pytest.raises(PostNotFoundError):
            asyncio.run(store.apply_category_tags("nope", [TagSelection(category_id="devops", confidence=0.9)]))

    def test_unknown_category_rolls_back(self, store, session_maker):
        selections = [
            TagSelection(category_id="devops", confidence=0.9),
            TagSelection(category_id="cooking", confidence=0.9),
        ]

        with pytest.raises(TagStoreError, match="cooking"):
            asyncio.run(store.apply_category_tags("post-1", selections))

        assert asyncio.run(assignments(session_maker)) == {"tutorial": False, "review": True}

    @pytest.mark.parametrize("count", [0, 6])
    def test_selection_count_limits(self, store, count):
        selections = [TagSelection(category_id=f"c{i}", confidence=0.9) for i in range(count)]

        with pytest.raises(TagStoreError):
            asyncio.run(store.apply_category_tags("post-1", selections))

    def test_remove_post_categories(self, store, session_maker):
        removed = asyncio.run(store.remove_post_categories("post-1", ["tutorial", "review"]))

        assert removed == 2
        assert asyncio.run(assignments(session_maker)) == {}

    def test_remove_only_ai_suggested(self, store, session_maker):
        removed = asyncio.run(
            store.remove_post_categories("post-1", ["tutorial", "review"], only_ai_suggested=True)
        )

        assert removed == 1
        assert asyncio.run(assignments(session_maker)) == {"tutorial": False}

    def test_remove_nothing(self, store):
        assert asyncio.run(store.remove_post_categories("post-1", [])) == 0


def test_category_model_round_trip(session_maker):
    async def load():
        async with session_maker() as session:
            return await session.get(Category, "devops")

    category = asyncio.run(load())

    assert category.name == "DevOps"
    assert category.slug == "devops"
