"""OpenAI-compatible chat client.

Uses the official ``openai`` SDK, pointed at OpenRouter by default, and
classifies SDK failures into ``AiErrorKind`` values at the call site.
"""

import logging

import openai
from openai import AsyncOpenAI

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.interfaces.llm import BaseLLMClient, LLMResponse

logger = logging.getLogger(__name__)


def classify_openai_error(error: openai.OpenAIError) -> AiErrorKind:
    """Map an SDK exception onto the AI error taxonomy.

    ``APITimeoutError`` subclasses ``APIConnectionError``, so it is checked first.
    """
    match error:
        case openai.APITimeoutError():
            return AiErrorKind.TIMEOUT
        case openai.APIConnectionError():
            return AiErrorKind.NETWORK
        case openai.RateLimitError():
            return AiErrorKind.QUOTA_EXCEEDED
        case openai.AuthenticationError() | openai.PermissionDeniedError():
            return AiErrorKind.AUTH
        case openai.BadRequestError() | openai.UnprocessableEntityError():
            return AiErrorKind.INVALID_INPUT
        case openai.APIStatusError() if error.status_code >= 500:
            return AiErrorKind.SERVER
        case _:
            return AiErrorKind.UNKNOWN


class OpenAIChatClient(BaseLLMClient):
    """Chat client for OpenAI-compatible endpoints.

    Attributes:
        model: The chat model used for every request.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 0,
    ) -> None:
        """Initialize the chat client.

        Args:
            api_key: API key for the endpoint.
            model: Chat model name, e.g. ``google/gemini-2.5-flash-lite``.
            base_url: Optional custom base URL for the API.
            timeout: Per-request timeout in seconds.
            max_retries: SDK-level retries. Retries are normally driven by
                ``devlog.services.retry`` instead.
        """
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._model = model

    @property
    def model(self) -> str:
        """Return the model name."""
        return self._model

    async def complete(
        self,
        system: str,
        user: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        json_mode: bool = False,
    ) -> LLMResponse:
        logger.debug(f"Requesting chat completion from {self._model} (json_mode={json_mode})")

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.OpenAIError as e:
            kind = classify_openai_error(e)
            logger.error(f"Chat completion failed ({kind.value}): {e}")
            raise AiServiceError(str(e) or "Chat completion failed", kind=kind) from e

        if not response.choices:
            raise AiServiceError("Model returned no choices", kind=AiErrorKind.INVALID_RESPONSE)

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise AiServiceError(
                "The model refused to process this content",
                kind=AiErrorKind.CONTENT_REJECTED,
            )

        content = choice.message.content or ""
        if not content.strip():
            raise AiServiceError("Model returned an empty response", kind=AiErrorKind.INVALID_RESPONSE)

        tokens_used = response.usage.total_tokens if response.usage else None
        logger.info(f"Chat completion succeeded ({tokens_used or 'unknown'} tokens)")

        return LLMResponse(content=content, model=response.model or self._model, tokens_used=tokens_used)

    async def close(self) -> None:
        await self._client.close()
