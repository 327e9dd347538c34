"""Chat-completion client implementations."""

from devlog.strategies.llm.openai import OpenAIChatClient, classify_openai_error

__all__ = ["OpenAIChatClient", "classify_openai_error"]
