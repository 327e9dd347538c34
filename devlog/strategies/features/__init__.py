"""AI content features."""

from devlog.strategies.features.category import CategoryRecommendationFeature
from devlog.strategies.features.seo import SeoRecommendationFeature
from devlog.strategies.features.seo_validation import SeoValidationFeature
from devlog.strategies.features.style import StyleUpgradeFeature

__all__ = [
    "CategoryRecommendationFeature",
    "SeoRecommendationFeature",
    "SeoValidationFeature",
    "StyleUpgradeFeature",
]
