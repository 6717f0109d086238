from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import stripe

logger = logging.getLogger(__name__)

CURRENCY = "usd"
CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True, slots=True)
class PlanPrice:
    name: str
    unit_amount: int
    interval: str | None = None


PLAN_PRICES: dict[str, PlanPrice] = {
    "monthly": PlanPrice(name="Monthly Magic", unit_amount=999, interval="month"),
    "yearly": PlanPrice(name="Yearly Wonder", unit_amount=7999, interval="year"),
    "forever": PlanPrice(name="Forever Magic", unit_amount=19999),
}

ADDON_PRICES: dict[str, PlanPrice] = {
    "friendship": PlanPrice(name="Friendship Certificate", unit_amount=499),
    "nicelist": PlanPrice(name="Nice List Certificate", unit_amount=499),
    "video": PlanPrice(name="Personalized Video", unit_amount=1499),
    "bundle": PlanPrice(name="Ultimate Bundle", unit_amount=1999),
}


class UnknownPlanError(ValueError):
    pass


class WebhookVerificationError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    id: str
    url: str | None


@dataclass(frozen=True, slots=True)
class WebhookEvent:
    id: str | None
    type: str
    data_object: dict[str, Any]


def _line_item(price: PlanPrice) -> dict[str, Any]:
    price_data: dict[str, Any] = {
        "currency": CURRENCY,
        "product_data": {"name": price.name},
        "unit_amount": price.unit_amount,
    }
    if price.interval:
        price_data["recurring"] = {"interval": price.interval}
    return {"price_data": price_data, "quantity": 1}


def resolve_plan(plan_type: str) -> PlanPrice:
    plan = PLAN_PRICES.get(plan_type)
    if plan is None:
        raise UnknownPlanError(f"Unknown plan type: {plan_type}")
    return plan


def build_line_items(plan: PlanPrice, addons: list[str] | None = None) -> list[dict[str, Any]]:
    """Plan first, then each known addon in request order; unknown addons are skipped."""
    items = [_line_item(plan)]
    for addon in addons or []:
        price = ADDON_PRICES.get(addon)
        if price is not None:
            items.append(_line_item(price))
    return items


def checkout_mode(plan: PlanPrice) -> str:
    return "subscription" if plan.interval else "payment"


class CheckoutGateway(Protocol):
    def create_checkout_session(
        self,
        *,
        line_items: list[dict[str, Any]],
        mode: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None,
        metadata: dict[str, str],
    ) -> CheckoutSession: ...

    def construct_event(self, payload: bytes, signature: str | None) -> WebhookEvent: ...


class StripeCheckoutGateway:
    def __init__(self, *, secret_key: str | None, webhook_secret: str | None) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    def create_checkout_session(
        self,
        *,
        line_items: list[dict[str, Any]],
        mode: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None,
        metadata: dict[str, str],
    ) -> CheckoutSession:
        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": line_items,
            "mode": mode,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email
        session = stripe.checkout.Session.create(api_key=self._secret_key, **params)
        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if not self._webhook_secret:
            raise WebhookVerificationError("Webhook secret is not configured")
        if not signature:
            raise WebhookVerificationError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError(str(exc)) from exc
        except ValueError as exc:
            raise WebhookVerificationError(f"Invalid payload: {exc}") from exc

        return WebhookEvent(id=event.id, type=event.type, data_object=event.data.object.to_dict())
