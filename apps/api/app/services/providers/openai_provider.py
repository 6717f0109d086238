from __future__ import annotations

from openai import OpenAI


class OpenAIProvider:
    key = "openai"

    def __init__(self, *, api_key: str, model: str, client: OpenAI | None = None) -> None:
        self.model = model
        self._client = client or OpenAI(api_key=api_key)

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str | None:
        completion = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not completion.choices:
            return None
        return completion.choices[0].message.content
