"""AI integration service.

Runs the enabled AI features for a post concurrently and aggregates their
outcomes, then optionally applies high-confidence category suggestions.

Failure handling is "collect, don't abort": each feature call is wrapped so
that it always resolves to a ``FeatureOutcome``. ``asyncio.gather`` therefore
never sees an exception and one feature failing cannot cancel the others.
Nothing here retries; ``devlog.services.retry`` is for callers that want to.
"""

import asyncio
import datetime
from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from pydantic import BaseModel, Field, model_validator

from devlog.core.errors import AiErrorKind
from devlog.interfaces.feature import BaseFeature, FeatureRequest
from devlog.interfaces.store import BaseCategoryTagStore, TagSelection
from devlog.strategies.features.models import CategoryRecommendation

logger = structlog.get_logger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7

FEATURE_ERROR_DEFAULTS: dict[str, str] = {
    "styling": "Styling failed",
    "seo": "SEO optimization failed",
    "categories": "Category recommendation failed",
}


class FeatureFlags(BaseModel):
    """Which features to run. Disabled features are not attempted."""

    enable_styling: bool = True
    enable_seo: bool = True
    enable_categories: bool = True


class FeatureOutcome(BaseModel):
    """Success with a payload, or failure with a message. Never both."""

    success: bool
    data: Any = None
    error: str | None = None
    error_kind: AiErrorKind | None = None

    @model_validator(mode="after")
    def check_exclusive(self) -> "FeatureOutcome":
        if self.success:
            if self.data is None or self.error is not None or self.error_kind is not None:
                raise ValueError("A successful outcome carries data and no error")
        elif self.data is not None or not self.error:
            raise ValueError("A failed outcome carries an error and no data")
        return self

    @classmethod
    def ok(cls, data: Any) -> "FeatureOutcome":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str, kind: AiErrorKind | None = None) -> "FeatureOutcome":
        return cls(success=False, error=error, error_kind=kind)


class IntegrationResult(BaseModel):
    """Aggregate of one ``process`` call.

    Attributes:
        styling: Outcome of the style upgrade, None if it was not requested.
        seo: Outcome of the SEO recommendation, None if it was not requested.
        categories: Outcome of the category recommendation, None if it was not requested.
        overall_success: True iff every requested feature succeeded.
        processed_at: When all requested features had settled (UTC).
    """

    styling: FeatureOutcome | None = None
    seo: FeatureOutcome | None = None
    categories: FeatureOutcome | None = None
    overall_success: bool
    processed_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )


def select_confident(
    recommendations: Sequence[CategoryRecommendation], threshold: float
) -> list[CategoryRecommendation]:
    """Recommendations strictly above ``threshold``, in their original order.

    A recommendation exactly at the threshold is excluded.
    """
    return [recommendation for recommendation in recommendations if recommendation.confidence > threshold]


class AiIntegrationService:
    """Coordinates the AI features for a single post.

    Constructed once at startup with its collaborators and shared by every
    request; it holds no per-call state.

    Example:
        ```python
        service = AiIntegrationService(styling, seo, categories, tag_store)
        result = await service.process(title, content, FeatureFlags(enable_styling=False))
        if result.categories and result.categories.success:
            await service.apply_if_confident(post_id, result.categories.data.recommendations)
        ```
    """

    def __init__(
        self,
        styling: BaseFeature,
        seo: BaseFeature,
        categories: BaseFeature,
        tag_store: BaseCategoryTagStore,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        """Initialize the service.

        Args:
            styling: Style upgrade feature.
            seo: SEO recommendation feature.
            categories: Category recommendation feature.
            tag_store: Store used to apply category tags.
            confidence_threshold: Default threshold for ``apply_if_confident``.
        """
        self._features: dict[str, BaseFeature] = {
            "styling": styling,
            "seo": seo,
            "categories": categories,
        }
        self._tag_store = tag_store
        self._confidence_threshold = confidence_threshold

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    async def process(
        self,
        title: str | None,
        content: str,
        flags: FeatureFlags | None = None,
        content_type: str = "markdown",
        options: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> IntegrationResult:
        """Run every enabled feature concurrently and aggregate the outcomes.

        Args:
            title: Post title.
            content: Post body.
            flags: Features to run. Defaults to all of them.
            content_type: ``markdown`` or ``html``.
            options: Per-feature options keyed by ``styling``, ``seo`` or ``categories``.

        Returns:
            IntegrationResult. Never raises for a feature failure.
        """
        flags = flags or FeatureFlags()
        options = options or {}
        enabled = {
            "styling": flags.enable_styling,
            "seo": flags.enable_seo,
            "categories": flags.enable_categories,
        }

        pending = {
            name: self._settle(
                name,
                FeatureRequest(
                    title=title,
                    content=content,
                    content_type=content_type,
                    options=dict(options.get(name, {})),
                ),
            )
            for name, is_enabled in enabled.items()
            if is_enabled
        }

        log = logger.bind(features=list(pending))
        log.info("Processing AI features")

        outcomes = dict(zip(pending, await asyncio.gather(*pending.values())))

        overall_success = True
        for outcome in outcomes.values():
            if not outcome.success:
                overall_success = False

        log.info("AI features settled", overall_success=overall_success)

        return IntegrationResult(
            **outcomes,
            overall_success=overall_success,
            processed_at=datetime.datetime.now(datetime.timezone.utc),
        )

    async def _settle(self, name: str, request: FeatureRequest) -> FeatureOutcome:
        """Run one feature and reduce whatever happens to a FeatureOutcome."""
        default_error = FEATURE_ERROR_DEFAULTS[name]
        try:
            response = await self._features[name].invoke(request)
        except Exception as e:
            logger.error("AI feature raised", feature=name, error=str(e), exc_info=True)
            return FeatureOutcome.failed(str(e) or default_error, AiErrorKind.UNKNOWN)

        if response.success and response.data is not None:
            return FeatureOutcome.ok(response.data)

        logger.warning("AI feature failed", feature=name, error=response.error)
        return FeatureOutcome.failed(response.error or default_error, response.error_kind)

    async def apply_if_confident(
        self,
        post_id: str,
        recommendations: Sequence[CategoryRecommendation],
        threshold: float | None = None,
    ) -> bool:
        """Tag a post with the recommendations strictly above the threshold.

        The store accepts at most ``MAX_TAG_SELECTIONS`` categories per call.
        The category feature never returns more than that, but a larger
        hand-built list that clears the threshold is rejected by the store
        and reported as False.

        Args:
            post_id: Post to tag.
            recommendations: Candidate categories. Not modified.
            threshold: Confidence threshold. Defaults to the service's.

        Returns:
            True if nothing qualified or the store applied the tags,
            False if the store call failed.
        """
        threshold = self._confidence_threshold if threshold is None else threshold
        selected = select_confident(recommendations, threshold)

        log = logger.bind(post_id=post_id, threshold=threshold)
        if not selected:
            log.info("No category recommendation above threshold")
            return True

        selections = [
            TagSelection(category_id=recommendation.category_id, confidence=recommendation.confidence)
            for recommendation in selected
        ]
        try:
            result = await self._tag_store.apply_category_tags(post_id, selections)
        except Exception as e:
            log.error("Applying category tags failed", error=str(e), exc_info=True)
            return False

        log.info("Applied category tags", added=result.added, success=result.success)
        return result.success

    async def validate_and_apply(self, post_id: str, result: IntegrationResult) -> bool:
        """Apply whatever parts of an IntegrationResult are auto-applicable.

        Only category tags are applied automatically. A failed or missing
        category outcome means there is nothing to apply.
        """
        categories = result.categories
        if categories is None or not categories.success:
            return True

        recommendations = getattr(categories.data, "recommendations", None)
        if recommendations is None:
            logger.warning("Category outcome has no recommendations", post_id=post_id)
            return False
        return await self.apply_if_confident(post_id, recommendations)
