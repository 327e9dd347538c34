"""Abstract base class for chat-completion clients.

The Strategy Pattern allows the AI features to run against any
OpenAI-compatible endpoint, or against an in-process fake in tests.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class LLMResponse(BaseModel):
    """Text returned by a single chat completion."""

    content: str
    model: str
    tokens_used: int | None = None


class BaseLLMClient(ABC):
    """Abstract base class for chat-completion clients.

    Implementations classify every transport or provider failure into an
    ``AiServiceError`` before it leaves the client, so callers never inspect
    provider-specific exceptions.

    Example:
        ```python
        class EchoClient(BaseLLMClient):
            async def complete(self, system, user, **kwargs) -> LLMResponse:
                return LLMResponse(content=user, model="echo")
        ```
    """

    @abstractmethod
    async def complete(
        self,
        system: str,
        user: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Run one chat completion.

        Args:
            system: System prompt.
            user: User prompt.
            temperature: Sampling temperature.
            max_tokens: Upper bound on generated tokens.
            json_mode: Ask the endpoint to return a JSON object.

        Returns:
            The generated text.

        Raises:
            AiServiceError: If the request fails or the response is empty.
        """
        ...

    async def close(self) -> None:
        """Release network resources. Default is a no-op."""
        return None
