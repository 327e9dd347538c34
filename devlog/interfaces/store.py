"""Abstract base classes for category persistence.

The AI layer only needs two things from storage: the list of categories a
post may be tagged with, and a way to apply or remove AI-suggested tags.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

# Largest number of categories one apply call may attach.
MAX_TAG_SELECTIONS = 5


class TagStoreError(Exception):
    """Raised when a tag operation is rejected by the store."""


class PostNotFoundError(TagStoreError):
    """Raised when the target post does not exist."""


class CategoryInfo(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None


class PostInfo(BaseModel):
    id: str
    title: str
    content: str


class TagSelection(BaseModel):
    """A category to attach to a post, with the confidence behind it."""

    category_id: str
    confidence: float = Field(ge=0, le=1)


class AutoTagResult(BaseModel):
    """Outcome of applying category tags to a post.

    Attributes:
        success: Whether the tags were written.
        post_id: The tagged post.
        added: Category ids attached by this call.
        removed: Category ids detached by this call.
        final: Every category id on the post afterwards.
    """

    success: bool
    post_id: str
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    final: list[str] = Field(default_factory=list)


class BaseCategoryCatalog(ABC):
    """Read access to the blog's categories and post assignments."""

    @abstractmethod
    async def list_categories(self) -> list[CategoryInfo]:
        """Return every category, ordered by name."""
        ...

    @abstractmethod
    async def get_post(self, post_id: str) -> PostInfo | None:
        """Return the post, or None if it does not exist."""
        ...

    @abstractmethod
    async def post_category_ids(self, post_id: str) -> list[str]:
        """Return the ids of the categories currently on a post."""
        ...


class BaseCategoryTagStore(ABC):
    """Write access to post category assignments."""

    @abstractmethod
    async def apply_category_tags(
        self,
        post_id: str,
        selections: list[TagSelection],
        replace_existing: bool = False,
    ) -> AutoTagResult:
        """Attach categories to a post in a single transaction.

        Existing AI-suggested tags are replaced. With ``replace_existing``
        every existing tag is replaced, including ones chosen by hand.

        Args:
            post_id: The post to tag.
            selections: Categories to attach.
            replace_existing: Also remove manually chosen tags.

        Returns:
            AutoTagResult describing the change.

        Raises:
            PostNotFoundError: If the post does not exist.
            TagStoreError: If the selections are invalid.
        """
        ...

    @abstractmethod
    async def remove_post_categories(
        self,
        post_id: str,
        category_ids: list[str],
        only_ai_suggested: bool = False,
    ) -> int:
        """Detach categories from a post.

        Returns:
            The number of assignments removed.
        """
        ...
