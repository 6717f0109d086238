from __future__ import annotations

from typing import Protocol

from app.core.config import Settings
from app.services.providers.noop import NoopLLMProvider
from app.services.providers.openai_provider import OpenAIProvider


class LLMProvider(Protocol):
    key: str

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str | None: ...


def get_llm_provider(settings: Settings) -> LLMProvider:
    normalized = (settings.llm_provider_key or "noop").strip().lower()
    if normalized == "openai":
        if not settings.openai_api_key or not settings.llm_model:
            return NoopLLMProvider(reason="openai_misconfigured")
        return OpenAIProvider(api_key=settings.openai_api_key, model=settings.llm_model)
    return NoopLLMProvider()
