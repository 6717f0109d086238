from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class NoopLLMProvider:
    key: str = "noop"
    reason: str | None = None

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str | None:
        _ = (prompt, max_tokens, temperature)
        return None
