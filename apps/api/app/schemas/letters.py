from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LetterCreateRequest(BaseModel):
    content: str


class LetterRespondRequest(BaseModel):
    response: str


class LetterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kid_id: int
    elf_id: int
    content: str
    sent_at: datetime
    response: str | None
    response_at: datetime | None
    responded_by: str | None


class KidLetterOut(LetterOut):
    elf_name: str
    elf_emoji: str


class ParentLetterOut(LetterOut):
    kid_name: str
    elf_name: str


class LetterSentResponse(BaseModel):
    message: str
    letter: LetterOut
