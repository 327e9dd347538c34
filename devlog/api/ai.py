"""AI content-enhancement API endpoints.

Single-feature routes retry retryable AI failures with the feature's retry
policy. The integration routes run several features at once and never
retry; partial failures are reported inside the result body.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from devlog.api.deps import (
    get_category_catalog,
    get_category_feature,
    get_integration_service,
    get_prompt_registry,
    get_seo_feature,
    get_seo_validation_feature,
    get_style_feature,
    get_tag_store,
    require_author,
)
from devlog.api.schemas import (
    ApplyRequest,
    ApplyResponse,
    AutoTagRequest,
    CategoryRecommendRequest,
    ErrorResponse,
    IntegrateRequest,
    InvalidVariableResponse,
    PromptValidateRequest,
    PromptValidateResponse,
    RecommendAndApplyRequest,
    RecommendAndApplyResponse,
    RemoveTagsRequest,
    RemoveTagsResponse,
    SeoRecommendRequest,
    SeoValidateRequest,
    StyleUpgradeRequest,
)
from devlog.core.errors import AiErrorKind, AiServiceError, describe_error, error_severity
from devlog.interfaces.feature import BaseFeature, FeatureRequest
from devlog.interfaces.store import (
    AutoTagResult,
    BaseCategoryCatalog,
    BaseCategoryTagStore,
    PostNotFoundError,
    TagStoreError,
)
from devlog.prompts.templates import PromptRegistry
from devlog.prompts.variables import extract_placeholders, render, validate_template, validate_variables
from devlog.services.integration import AiIntegrationService, IntegrationResult, select_confident
from devlog.services.retry import policy_for, retry_async
from devlog.strategies.features.models import (
    CategoryRecommendationData,
    SeoRecommendationData,
    SeoValidationData,
    StyleUpgradeData,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"], dependencies=[Depends(require_author)])

AI_ERROR_STATUS: dict[AiErrorKind, int] = {
    AiErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    AiErrorKind.CONTENT_REJECTED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AiErrorKind.QUOTA_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
    AiErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    AiErrorKind.NETWORK: status.HTTP_502_BAD_GATEWAY,
    AiErrorKind.SERVER: status.HTTP_502_BAD_GATEWAY,
    AiErrorKind.AUTH: status.HTTP_502_BAD_GATEWAY,
    AiErrorKind.INVALID_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    AiErrorKind.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def ai_error_handler(request: Request, exc: AiServiceError) -> JSONResponse:
    """Translate an AiServiceError into an ErrorResponse body."""
    severity = error_severity(exc)
    log = logger.error if severity in ("high", "critical") else logger.warning
    log(f"AI request failed ({exc.kind.value}, {severity}) on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=AI_ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=ErrorResponse(
            detail=exc.message,
            error_code=exc.kind.value,
            user_error=describe_error(exc),
        ).model_dump(),
    )


async def run_with_retry(feature: BaseFeature, request: FeatureRequest) -> BaseModel:
    return await retry_async(lambda: feature.run(request), policy_for(feature.name))


# =============================================================================
# Single features
# =============================================================================


@router.post("/style-upgrade", response_model=StyleUpgradeData)
async def style_upgrade(
    body: StyleUpgradeRequest,
    feature: BaseFeature = Depends(get_style_feature),
) -> BaseModel:
    """Rewrite a post for readability and score the result."""
    request = FeatureRequest(
        title=body.title,
        content=body.content,
        content_type=body.content_type,
        options=body.options.model_dump(),
    )
    return await run_with_retry(feature, request)


@router.post("/seo/recommend", response_model=SeoRecommendationData)
async def seo_recommend(
    body: SeoRecommendRequest,
    feature: BaseFeature = Depends(get_seo_feature),
) -> BaseModel:
    """Recommend SEO metadata for a post."""
    request = FeatureRequest(
        title=body.title,
        content=body.content,
        content_type=body.content_type,
        options={
            "target_keywords": body.target_keywords,
            "language": body.language,
            "include_schema": body.include_schema,
        },
    )
    return await run_with_retry(feature, request)


@router.post("/seo/validate", response_model=SeoValidationData)
async def seo_validate(
    body: SeoValidateRequest,
    feature: BaseFeature = Depends(get_seo_validation_feature),
) -> BaseModel:
    """Score existing content and metadata for SEO and suggest improvements."""
    request = FeatureRequest(
        content=body.content,
        content_type=body.content_type,
        options={"metadata": body.metadata.model_dump() if body.metadata else None},
    )
    return await run_with_retry(feature, request)


@router.post("/category/recommend", response_model=CategoryRecommendationData)
async def category_recommend(
    body: CategoryRecommendRequest,
    feature: BaseFeature = Depends(get_category_feature),
) -> BaseModel:
    """Recommend categories for a post from the blog's catalog."""
    request = FeatureRequest(
        title=body.title,
        content=body.content,
        content_type=body.content_type,
        options={
            "post_id": body.post_id,
            "existing_category_ids": body.existing_category_ids,
            "max_suggestions": body.max_suggestions,
        },
    )
    return await run_with_retry(feature, request)


# =============================================================================
# Category tagging
# =============================================================================


@router.post("/category/auto-tag", response_model=AutoTagResult)
async def auto_tag(
    body: AutoTagRequest,
    store: BaseCategoryTagStore = Depends(get_tag_store),
) -> AutoTagResult:
    """Apply the chosen categories to a post as AI-suggested tags."""
    try:
        return await store.apply_category_tags(
            body.post_id, body.selections, replace_existing=body.replace_existing
        )
    except PostNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except TagStoreError as e:
        logger.warning(f"Auto-tag rejected for post {body.post_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.delete("/category/auto-tag", response_model=RemoveTagsResponse)
async def remove_tags(
    body: RemoveTagsRequest,
    store: BaseCategoryTagStore = Depends(get_tag_store),
) -> RemoveTagsResponse:
    """Detach categories from a post."""
    removed = await store.remove_post_categories(
        body.post_id, body.category_ids, only_ai_suggested=body.only_ai_suggested
    )
    return RemoveTagsResponse(post_id=body.post_id, removed_count=removed)


@router.post("/category/recommend-and-apply", response_model=RecommendAndApplyResponse)
async def recommend_and_apply(
    body: RecommendAndApplyRequest,
    catalog: BaseCategoryCatalog = Depends(get_category_catalog),
    feature: BaseFeature = Depends(get_category_feature),
    service: AiIntegrationService = Depends(get_integration_service),
) -> RecommendAndApplyResponse:
    """Recommend categories for a stored post and optionally apply the confident ones."""
    post = await catalog.get_post(body.post_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Post '{body.post_id}' not found",
        )

    request = FeatureRequest(title=post.title, content=post.content, options={"post_id": post.id})
    data = await run_with_retry(feature, request)
    recommendations = data.recommendations

    applied = False
    if body.auto_apply and select_confident(recommendations, service.confidence_threshold):
        applied = await service.apply_if_confident(post.id, recommendations)

    return RecommendAndApplyResponse(
        post_id=post.id, recommendations=recommendations, applied=applied
    )


# =============================================================================
# Integration
# =============================================================================


@router.post("/integrate", response_model=IntegrationResult)
async def integrate(
    body: IntegrateRequest,
    service: AiIntegrationService = Depends(get_integration_service),
) -> IntegrationResult:
    """Run the enabled features concurrently and report each outcome."""
    options = {
        "styling": body.style_options.model_dump(),
        "seo": {"target_keywords": body.target_keywords},
        "categories": {"post_id": body.post_id} if body.post_id else {},
    }
    return await service.process(
        body.title, body.content, body.flags, content_type=body.content_type, options=options
    )


@router.post("/integrate/apply", response_model=ApplyResponse)
async def integrate_apply(
    body: ApplyRequest,
    service: AiIntegrationService = Depends(get_integration_service),
) -> ApplyResponse:
    """Apply category recommendations strictly above the confidence threshold."""
    threshold = service.confidence_threshold if body.threshold is None else body.threshold
    selected = select_confident(body.recommendations, threshold)
    applied = await service.apply_if_confident(body.post_id, body.recommendations, threshold)

    return ApplyResponse(
        post_id=body.post_id,
        applied=applied,
        threshold=threshold,
        applied_categories=[r.category_id for r in selected] if applied else [],
    )


# =============================================================================
# Prompts
# =============================================================================


@router.post("/prompts/validate", response_model=PromptValidateResponse)
async def validate_prompt(
    body: PromptValidateRequest,
    registry: PromptRegistry = Depends(get_prompt_registry),
) -> PromptValidateResponse:
    """Check variables against a registered prompt or a raw template."""
    if body.template_name:
        try:
            template = registry.get(body.template_name)
        except KeyError as e:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown prompt template: {body.template_name}",
            ) from e

        result = template.validate(body.variables)
        template_errors = validate_template(template.system).errors + validate_template(template.user).errors
        placeholders = extract_placeholders(template.system) | extract_placeholders(template.user)
        rendered = template.render(body.variables)
        preview = {"system": rendered.system, "user": rendered.user, "missing": list(rendered.missing)}

    elif body.template is not None:
        result = validate_variables(body.template, body.variables)
        template_errors = validate_template(body.template).errors
        placeholders = extract_placeholders(body.template)
        rendered_text = render(body.template, body.variables)
        preview = {"text": rendered_text.text, "missing": list(rendered_text.missing)}

    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either template_name or template is required",
        )

    return PromptValidateResponse(
        is_valid=result.is_valid and not template_errors,
        missing_variables=result.missing_variables,
        invalid_variables=[
            InvalidVariableResponse(variable=item.variable, reason=item.reason)
            for item in result.invalid_variables
        ],
        template_errors=template_errors,
        placeholders=sorted(placeholders),
        preview=preview,
    )
