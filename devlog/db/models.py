"""Database models using SQLModel.

Only the tables the AI layer reads or writes are modelled here:
- Category: The blog's fixed topic list
- Post: Authored content, read for recommendations
- PostCategory: Category assignments, manual or AI-suggested
"""

import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlmodel import Field, SQLModel


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


# =============================================================================
# Shared Models (for API responses, not database tables)
# =============================================================================


class CategoryBase(SQLModel):
    """Base category fields."""

    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100, unique=True, index=True)
    description: str | None = Field(default=None, max_length=500)


class PostBase(SQLModel):
    """Base post fields."""

    title: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=200, unique=True, index=True)
    content: str = Field(default="")


# =============================================================================
# Database Models
# =============================================================================


class Category(CategoryBase, table=True):
    """A blog category. The id doubles as the stable key the model answers with."""

    __tablename__ = "categories"

    id: str = Field(primary_key=True, max_length=100)
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class Post(PostBase, table=True):
    __tablename__ = "posts"

    id: str = Field(primary_key=True, max_length=100)
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, onupdate=utcnow),
    )


class PostCategory(SQLModel, table=True):
    """Assignment of a category to a post.

    ``is_ai_suggested`` separates tags written by auto-tagging from tags
    an author chose by hand; auto-tagging only ever replaces the former
    unless asked to replace everything.
    """

    __tablename__ = "post_categories"

    post_id: str = Field(
        sa_column=Column(
            String(100), ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
        ),
    )
    category_id: str = Field(
        sa_column=Column(
            String(100), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
        ),
    )
    is_ai_suggested: bool = Field(default=False)
    confidence: float | None = Field(default=None, ge=0, le=1)
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
