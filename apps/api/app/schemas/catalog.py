from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class VideoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    url: str
    thumbnail_url: str | None
    is_active: bool
    created_at: datetime


class CertificateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kid_id: int
    type: str
    title: str
    issued_at: datetime
