from app.services.providers.noop import NoopLLMProvider
from app.services.providers.openai_provider import OpenAIProvider

__all__ = ["NoopLLMProvider", "OpenAIProvider"]
