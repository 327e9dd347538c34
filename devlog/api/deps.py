"""FastAPI dependencies for dependency injection.

Provides reusable dependencies for routes including:
- Author authentication
- AI features, stores and the integration service from the app's factory
"""

import logging
import secrets

from fastapi import Depends, Header, HTTPException, Request, status

from devlog.core.config import Settings
from devlog.core.factory import ComponentFactory
from devlog.interfaces.feature import BaseFeature
from devlog.interfaces.store import BaseCategoryCatalog, BaseCategoryTagStore
from devlog.prompts.templates import PromptRegistry
from devlog.services.integration import AiIntegrationService

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_factory(request: Request) -> ComponentFactory:
    return request.app.state.factory


async def require_author(
    authorization: str | None = Header(default=None, description="Bearer token"),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Dependency that admits only requests carrying the author token.

    Raises:
        HTTPException: 503 if no token is configured, 401 if the header is
            missing or does not match.
    """
    if not settings.author_api_token:
        logger.error("AUTHOR_API_TOKEN is not configured; rejecting AI request")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Author authentication is not configured",
        )

    if not authorization:
        logger.warning("Authorization header is missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.removeprefix("Bearer ").strip()
    if not secrets.compare_digest(token, settings.author_api_token):
        logger.warning("Invalid author token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _feature(factory: ComponentFactory, name: str) -> BaseFeature:
    try:
        return factory.get_feature(name)
    except ValueError as e:
        logger.error(f"AI feature '{name}' is unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"AI feature '{name}' is not configured",
        ) from e


def get_style_feature(factory: ComponentFactory = Depends(get_factory)) -> BaseFeature:
    return _feature(factory, "styling")


def get_seo_feature(factory: ComponentFactory = Depends(get_factory)) -> BaseFeature:
    return _feature(factory, "seo")


def get_seo_validation_feature(factory: ComponentFactory = Depends(get_factory)) -> BaseFeature:
    return _feature(factory, "seo_validation")


def get_category_feature(factory: ComponentFactory = Depends(get_factory)) -> BaseFeature:
    return _feature(factory, "categories")


def get_category_catalog(factory: ComponentFactory = Depends(get_factory)) -> BaseCategoryCatalog:
    return factory.get_category_catalog()


def get_tag_store(factory: ComponentFactory = Depends(get_factory)) -> BaseCategoryTagStore:
    return factory.get_tag_store()


def get_prompt_registry(factory: ComponentFactory = Depends(get_factory)) -> PromptRegistry:
    return factory.get_prompt_registry()


def get_integration_service(
    factory: ComponentFactory = Depends(get_factory),
) -> AiIntegrationService:
    try:
        return factory.get_integration_service()
    except ValueError as e:
        logger.error(f"AI integration service is unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI integration is not configured",
        ) from e
