"""Component Factory for the AI layer.

Builds the chat client, stores, features and integration service from
settings. The application creates one factory at startup and keeps it on
``app.state``; routes reach components through it rather than through
module-level singletons.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devlog.core.config import Settings, get_settings
from devlog.interfaces.feature import BaseFeature
from devlog.interfaces.llm import BaseLLMClient
from devlog.interfaces.store import BaseCategoryCatalog, BaseCategoryTagStore
from devlog.prompts.templates import PromptRegistry, default_registry
from devlog.services.integration import AiIntegrationService
from devlog.strategies.features import (
    CategoryRecommendationFeature,
    SeoRecommendationFeature,
    SeoValidationFeature,
    StyleUpgradeFeature,
)
from devlog.strategies.llm import OpenAIChatClient
from devlog.strategies.stores import SqlCategoryCatalog, SqlCategoryTagStore

logger = logging.getLogger(__name__)

FEATURE_NAMES = ("styling", "seo", "seo_validation", "categories")


class ComponentFactory:
    """Factory for creating and caching AI layer components.

    Example:
        ```python
        factory = ComponentFactory(settings)

        seo = factory.get_feature("seo")
        service = factory.get_integration_service()
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """Initialize the factory.

        Args:
            settings: Application settings. If None, uses global settings.
            session_maker: Session maker for the stores. If None, the
                process-wide one from ``devlog.db.session`` is used.
        """
        self._settings = settings or get_settings()
        self._session_maker = session_maker
        self._llm_cache: BaseLLMClient | None = None
        self._registry_cache: PromptRegistry | None = None
        self._catalog_cache: BaseCategoryCatalog | None = None
        self._tag_store_cache: BaseCategoryTagStore | None = None
        self._feature_cache: dict[str, BaseFeature] = {}
        self._service_cache: AiIntegrationService | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    def _get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        if self._session_maker is None:
            from devlog.db.session import get_session_maker

            self._session_maker = get_session_maker(self._settings)
        return self._session_maker

    def get_llm_client(self) -> BaseLLMClient:
        """Get the chat client for the configured provider.

        Raises:
            ValueError: If the provider is unknown or the API key is missing.
        """
        if self._llm_cache is None:
            provider = self._settings.llm_provider

            logger.info(f"Instantiating LLM client: {provider}")

            match provider:
                case "openai" | "openrouter":
                    if not self._settings.openai_api_key:
                        raise ValueError("OPENAI_API_KEY is required for the chat client")
                    base_url = self._settings.openai_base_url if provider == "openrouter" else None
                    self._llm_cache = OpenAIChatClient(
                        api_key=self._settings.openai_api_key,
                        model=self._settings.llm_chat_model,
                        base_url=base_url,
                        timeout=self._settings.llm_timeout_seconds,
                    )
                case _:
                    raise ValueError(
                        f"Unknown LLM provider: {provider}. "
                        f"Valid options: 'openai', 'openrouter'"
                    )

        return self._llm_cache

    def get_prompt_registry(self) -> PromptRegistry:
        if self._registry_cache is None:
            self._registry_cache = default_registry()
        return self._registry_cache

    def get_category_catalog(self) -> BaseCategoryCatalog:
        if self._catalog_cache is None:
            logger.info("Instantiating category catalog")
            self._catalog_cache = SqlCategoryCatalog(self._get_session_maker())
        return self._catalog_cache

    def get_tag_store(self) -> BaseCategoryTagStore:
        if self._tag_store_cache is None:
            logger.info("Instantiating category tag store")
            self._tag_store_cache = SqlCategoryTagStore(self._get_session_maker())
        return self._tag_store_cache

    def get_feature(self, name: str) -> BaseFeature:
        """Get an AI feature by name.

        Args:
            name: One of ``styling``, ``seo``, ``seo_validation`` or ``categories``.

        Returns:
            A BaseFeature implementation instance.

        Raises:
            ValueError: If the feature name is unknown.
        """
        if name not in self._feature_cache:
            logger.info(f"Instantiating feature: {name}")
            settings = self._settings

            match name:
                case "styling":
                    feature: BaseFeature = StyleUpgradeFeature(
                        llm=self.get_llm_client(),
                        registry=self.get_prompt_registry(),
                        temperature=settings.style_temperature,
                        max_tokens=settings.style_max_tokens,
                        readability_temperature=settings.readability_temperature,
                        readability_max_tokens=settings.readability_max_tokens,
                        max_content_length=settings.max_prompt_content_length,
                    )
                case "seo":
                    feature = SeoRecommendationFeature(
                        llm=self.get_llm_client(),
                        registry=self.get_prompt_registry(),
                        temperature=settings.seo_temperature,
                        max_tokens=settings.seo_max_tokens,
                        max_content_length=settings.max_prompt_content_length,
                        max_title_length=settings.seo_max_title_length,
                        max_description_length=settings.seo_max_description_length,
                        language=settings.seo_language,
                        blog_name=settings.blog_name,
                        author_name=settings.blog_author,
                    )
                case "seo_validation":
                    feature = SeoValidationFeature(
                        llm=self.get_llm_client(),
                        registry=self.get_prompt_registry(),
                        temperature=settings.seo_validation_temperature,
                        max_tokens=settings.seo_validation_max_tokens,
                        max_content_length=settings.seo_validation_content_length,
                        pass_score=settings.seo_pass_score,
                    )
                case "categories":
                    feature = CategoryRecommendationFeature(
                        llm=self.get_llm_client(),
                        registry=self.get_prompt_registry(),
                        catalog=self.get_category_catalog(),
                        temperature=settings.category_temperature,
                        max_tokens=settings.category_max_tokens,
                        max_content_length=settings.max_prompt_content_length,
                        min_confidence=settings.category_min_confidence,
                        max_suggestions=settings.category_max_suggestions,
                        weights=settings.category_weights,
                    )
                case _:
                    raise ValueError(
                        f"Unknown feature: {name}. "
                        f"Valid options: {', '.join(FEATURE_NAMES)}"
                    )

            self._feature_cache[name] = feature

        return self._feature_cache[name]

    def get_integration_service(self) -> AiIntegrationService:
        if self._service_cache is None:
            logger.info("Instantiating AI integration service")
            self._service_cache = AiIntegrationService(
                styling=self.get_feature("styling"),
                seo=self.get_feature("seo"),
                categories=self.get_feature("categories"),
                tag_store=self.get_tag_store(),
                confidence_threshold=self._settings.auto_tag_confidence_threshold,
            )
        return self._service_cache

    async def aclose(self) -> None:
        """Close network clients and clear every cached component."""
        if self._llm_cache is not None:
            await self._llm_cache.close()
        self.clear_cache()

    def clear_cache(self) -> None:
        """Clear all cached component instances.

        This forces new instances to be created on next access.
        """
        self._llm_cache = None
        self._registry_cache = None
        self._catalog_cache = None
        self._tag_store_cache = None
        self._feature_cache = {}
        self._service_cache = None
        logger.debug("Component factory cache cleared")
