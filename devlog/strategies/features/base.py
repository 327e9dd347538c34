"""Shared plumbing for features backed by a prompt and a chat model."""

import logging
import time
from collections.abc import Mapping

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.interfaces.feature import BaseFeature
from devlog.interfaces.llm import BaseLLMClient
from devlog.prompts.templates import PromptRegistry, RenderedPrompt
from devlog.prompts.variables import PromptValue

logger = logging.getLogger(__name__)


class PromptedFeature(BaseFeature):
    """Base class for features that render a registered prompt.

    Attributes:
        llm: Chat client used for every model call.
        registry: Source of the feature's prompt templates.
    """

    def __init__(self, llm: BaseLLMClient, registry: PromptRegistry) -> None:
        self._llm = llm
        self._registry = registry

    def render_prompt(
        self, template_name: str, variables: Mapping[str, PromptValue | None]
    ) -> RenderedPrompt:
        """Validate variables against a template and render it.

        Raises:
            AiServiceError: With kind ``INVALID_INPUT`` if validation fails.
        """
        template = self._registry.get(template_name)
        validation = template.validate(variables)
        if not validation.is_valid:
            logger.warning(f"Invalid variables for '{template_name}': {validation.describe()}")
            raise AiServiceError(
                f"Invalid input: {validation.describe()}",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            )
        return template.render(variables)

    @staticmethod
    def elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)
