"""Core application configuration, errors and component wiring."""

from devlog.core.config import Settings, get_settings
from devlog.core.errors import AiErrorKind, AiServiceError

__all__ = ["Settings", "get_settings", "AiErrorKind", "AiServiceError"]
