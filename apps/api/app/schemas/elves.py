from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ElfOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    job: str
    personality: str
    emoji: str


class ElfSelectRequest(BaseModel):
    elfId: int


class ElfSelectResponse(BaseModel):
    message: str
    elf: ElfOut | None
