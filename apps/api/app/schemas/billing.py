from __future__ import annotations

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    planType: str
    addons: list[str] | None = None


class CheckoutResponse(BaseModel):
    sessionId: str
    url: str | None


class WebhookAck(BaseModel):
    received: bool = True
