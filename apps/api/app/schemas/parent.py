from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.models import ResponseMode


class ParentSettingsUpdateRequest(BaseModel):
    responseMode: ResponseMode


class ParentKidOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    age: int | None
    elf_id: int | None
    created_at: datetime
