from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Header, Request, status
from fastapi.responses import PlainTextResponse
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import AppSettings, CurrentParent, DBSession, Gateway
from app.core.exceptions import api_error
from app.models import Parent, SubscriptionStatus
from app.schemas.billing import CheckoutRequest, CheckoutResponse, WebhookAck
from app.services.billing import (
    CHECKOUT_COMPLETED,
    UnknownPlanError,
    WebhookEvent,
    WebhookVerificationError,
    build_line_items,
    checkout_mode,
    resolve_plan,
)

logger = logging.getLogger("penpals.api.billing")

router = APIRouter(prefix="/api", tags=["billing"])


@router.post("/subscriptions/create-checkout", response_model=CheckoutResponse)
def create_checkout(
    payload: CheckoutRequest,
    db: DBSession,
    gateway: Gateway,
    settings: AppSettings,
    claims: CurrentParent,
) -> CheckoutResponse:
    try:
        plan = resolve_plan(payload.planType)
    except UnknownPlanError as exc:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Unknown plan type") from exc

    email = db.scalar(select(Parent.email).where(Parent.id == claims.parent_id))
    frontend_url = settings.frontend_url.rstrip("/")
    try:
        session = gateway.create_checkout_session(
            line_items=build_line_items(plan, payload.addons),
            mode=checkout_mode(plan),
            success_url=f"{frontend_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{frontend_url}/cancel",
            customer_email=email,
            metadata={"parent_id": str(claims.parent_id), "plan_type": payload.planType},
        )
    except Exception as exc:
        logger.exception("checkout.failed", extra={"parent_id": claims.parent_id, "plan_type": payload.planType})
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create checkout session") from exc

    logger.info("checkout.created", extra={"parent_id": claims.parent_id, "plan_type": payload.planType})
    return CheckoutResponse(sessionId=session.id, url=session.url)


def apply_webhook_event(db: Session, event: WebhookEvent) -> None:
    """Mark the parent named in a completed checkout as subscribed.

    Events are not deduplicated; replaying one rewrites the same status and plan.
    """
    if event.type != CHECKOUT_COMPLETED:
        return

    metadata = event.data_object.get("metadata") or {}
    raw_parent_id = str(metadata.get("parent_id", ""))
    if not raw_parent_id.isdigit():
        logger.warning("webhook.missing_parent", extra={"event_id": event.id, "event_type": event.type})
        return

    db.execute(
        update(Parent)
        .where(Parent.id == int(raw_parent_id))
        .values(
            subscription_status=SubscriptionStatus.ACTIVE.value,
            subscription_plan=metadata.get("plan_type"),
            subscription_date=datetime.now(UTC),
        ),
    )
    db.commit()
    logger.info(
        "webhook.subscription_activated",
        extra={"event_id": event.id, "parent_id": int(raw_parent_id), "plan_type": metadata.get("plan_type")},
    )


@router.post("/webhooks/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    db: DBSession,
    gateway: Gateway,
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> WebhookAck | PlainTextResponse:
    payload = await request.body()
    try:
        event = gateway.construct_event(payload, stripe_signature)
    except WebhookVerificationError as exc:
        logger.warning("webhook.rejected", extra={"route": request.url.path})
        return PlainTextResponse(f"Webhook Error: {exc}", status_code=status.HTTP_400_BAD_REQUEST)

    await run_in_threadpool(apply_webhook_event, db, event)
    return WebhookAck()
