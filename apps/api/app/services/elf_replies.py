from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Protocol

from app.services.llm_provider import LLMProvider

logger = logging.getLogger(__name__)

REPLY_MAX_TOKENS = 300
REPLY_TEMPERATURE = 0.8

ELF_REPLY_PROMPT = """You are {name}, a friendly elf at the North Pole. Your job is {job} and your personality is: {personality}.

A child has written you this letter:
"{letter}"

Write a warm, magical, age-appropriate response (2-3 paragraphs max). Be encouraging, mention life at the North Pole, and sign off as {name}. Use some emojis sparingly."""

FALLBACK_REPLIES: tuple[str, ...] = (
    "Oh my jingle bells! Thank you so much for your wonderful letter! Life at the North Pole is so magical - "
    "we're busy making toys and singing carols! Keep being amazing! 🎄 Love, {name}",
    "Your letter made all the elves do a happy dance! We love hearing from you! The reindeer say hi too! "
    "⭐ Warmly, {name}",
    "What a lovely letter! Santa showed it to all of us and we're so happy! Keep spreading joy and kindness! "
    "❄️ Your friend, {name}",
)


class ElfPersona(Protocol):
    name: str
    job: str
    personality: str


def build_reply_prompt(letter_content: str, elf: ElfPersona) -> str:
    return ELF_REPLY_PROMPT.format(
        name=elf.name,
        job=elf.job,
        personality=elf.personality,
        letter=letter_content,
    )


def fallback_reply(elf: ElfPersona, rng: random.Random | None = None) -> str:
    template = (rng or random).choice(FALLBACK_REPLIES)
    return template.format(name=elf.name)


@dataclass(slots=True)
class ElfReplyGenerator:
    """Writes an elf's reply to a kid's letter.

    The provider call is best effort: any failure, or an empty completion,
    yields one of the fixed fallback replies so the caller always gets text.
    """

    provider: LLMProvider
    rng: random.Random = field(default_factory=random.Random)

    def generate(self, letter_content: str, elf: ElfPersona) -> str:
        prompt = build_reply_prompt(letter_content, elf)
        try:
            reply = self.provider.complete(
                prompt,
                max_tokens=REPLY_MAX_TOKENS,
                temperature=REPLY_TEMPERATURE,
            )
        except Exception:
            logger.warning("elf_reply.provider_failed", exc_info=True, extra={"elf_id": getattr(elf, "id", None)})
            reply = None

        if reply and reply.strip():
            return reply.strip()
        return fallback_reply(elf, self.rng)
