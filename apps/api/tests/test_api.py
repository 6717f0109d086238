from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings
from app.core.security import KidClaims, ParentClaims, create_access_token
from app.main import create_app
from app.models import Certificate, Elf, Kid, Parent, Video
from app.services.billing import CheckoutSession, WebhookEvent, WebhookVerificationError
from app.services.providers import NoopLLMProvider


class _FakeGateway:
    def __init__(self) -> None:
        self.payloads: list[bytes] = []

    def create_checkout_session(self, **kwargs: Any) -> CheckoutSession:
        return CheckoutSession(id="cs_test_1", url="https://checkout.stripe.test/cs_test_1")

    def construct_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        self.payloads.append(payload)
        if signature != "valid":
            raise WebhookVerificationError("No signatures found matching the expected signature for payload")
        return WebhookEvent(
            id="evt_1",
            type="checkout.session.completed",
            data_object={"metadata": {"parent_id": "1", "plan_type": "monthly"}},
        )


@pytest.fixture
def gateway() -> _FakeGateway:
    return _FakeGateway()


@pytest.fixture
def client(settings: Settings, session_factory: sessionmaker[Session], gateway: _FakeGateway) -> TestClient:
    app = create_app(
        settings,
        session_factory=session_factory,
        checkout_gateway=gateway,
        llm_provider=NoopLLMProvider(),
    )
    return TestClient(app)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_health_is_public(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["env"] == "test"


def test_responses_carry_security_headers_and_request_id(client: TestClient) -> None:
    response = client.get("/api/health", headers={"X-Request-Id": "req-42"})

    assert response.headers["X-Request-Id"] == "req-42"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Strict-Transport-Security" not in response.headers


def test_missing_token_is_401_and_bad_token_is_403(client: TestClient) -> None:
    missing = client.get("/api/letters")
    bad = client.get("/api/letters", headers=_bearer("garbage"))

    assert missing.status_code == 401
    assert missing.json() == {"code": "UNAUTHORIZED", "message": "Access token required"}
    assert bad.status_code == 403
    assert bad.json()["message"] == "Invalid token"


def test_role_mismatch_is_forbidden(client: TestClient, settings: Settings) -> None:
    kid_token = create_access_token(KidClaims(kid_id=1), secret=settings.jwt_secret)
    parent_token = create_access_token(ParentClaims(parent_id=1), secret=settings.jwt_secret)

    assert client.get("/api/parent/kids", headers=_bearer(kid_token)).status_code == 403
    assert client.post("/api/letters", json={"content": "hi"}, headers=_bearer(parent_token)).status_code == 403


def test_full_letter_flow_over_http(client: TestClient) -> None:
    parent = client.post(
        "/api/auth/parent/register",
        json={"email": "mom@test.com", "password": "cocoa", "name": "Mom"},
    ).json()
    kid = client.post(
        "/api/auth/kid/register",
        json={
            "username": "elfie",
            "password": "snow",
            "name": "Elfie",
            "age": 8,
            "parentCode": parent["user"]["parent_code"],
        },
    ).json()
    kid_headers = _bearer(kid["token"])
    parent_headers = _bearer(parent["token"])

    rejected = client.post("/api/letters", json={"content": "Hi!"}, headers=kid_headers)
    assert rejected.status_code == 400
    assert rejected.json()["code"] == "BAD_REQUEST"

    with client.app.state.session_factory() as db:
        elf = Elf(name="Jingle", job="Head Toy Tester", personality="Bouncy", emoji="🧸")
        db.add(elf)
        db.commit()
        elf_id = elf.id

    assert client.post("/api/elves/select", json={"elfId": elf_id}, headers=kid_headers).status_code == 200
    sent = client.post("/api/letters", json={"content": "Dear Jingle"}, headers=kid_headers)

    assert sent.status_code == 200
    assert sent.json()["message"] == "Letter sent to the North Pole!"
    assert "Jingle" in sent.json()["letter"]["response"]

    kid_letters = client.get("/api/letters", headers=kid_headers).json()
    parent_letters = client.get("/api/parent/letters", headers=parent_headers).json()
    assert [item["content"] for item in kid_letters] == ["Dear Jingle"]
    assert parent_letters[0]["kid_name"] == "Elfie"

    settings_update = client.patch("/api/parent/settings", json={"responseMode": "manual"}, headers=parent_headers)
    assert settings_update.json() == {"message": "Settings updated"}
    kids = client.get("/api/parent/kids", headers=parent_headers).json()
    assert [(item["username"], item["elf_id"]) for item in kids] == [("elfie", elf_id)]


def test_duplicate_registration_is_reported_as_conflict(client: TestClient) -> None:
    body = {"email": "mom@test.com", "password": "cocoa", "name": "Mom"}
    client.post("/api/auth/parent/register", json=body)

    response = client.post("/api/auth/parent/register", json=body)

    assert response.status_code == 400
    assert response.json() == {"code": "CONFLICT", "message": "Email already registered"}


def test_invalid_settings_value_is_a_validation_error(client: TestClient, settings: Settings) -> None:
    token = create_access_token(ParentClaims(parent_id=1), secret=settings.jwt_secret)

    response = client.patch("/api/parent/settings", json={"responseMode": "robot"}, headers=_bearer(token))

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_catalog_reads(client: TestClient, settings: Settings, db: Session, kid: Kid) -> None:
    db.add_all(
        [
            Video(title="Workshop tour", url="https://videos.test/1", is_active=True),
            Video(title="Retired", url="https://videos.test/2", is_active=False),
            Certificate(kid_id=kid.id, type="nicelist", title="Nice List 2026"),
        ]
    )
    db.commit()
    kid_token = create_access_token(KidClaims(kid_id=kid.id), secret=settings.jwt_secret)

    videos = client.get("/api/videos", headers=_bearer(kid_token)).json()
    certificates = client.get("/api/certificates", headers=_bearer(kid_token)).json()

    assert [item["title"] for item in videos] == ["Workshop tour"]
    assert [item["title"] for item in certificates] == ["Nice List 2026"]


def test_webhook_rejects_bad_signature_before_any_change(
    client: TestClient, gateway: _FakeGateway, db: Session, parent: Parent
) -> None:
    response = client.post(
        "/api/webhooks/stripe",
        content=b'{"type": "checkout.session.completed"}',
        headers={"Stripe-Signature": "forged", "Content-Type": "application/json"},
    )

    db.refresh(parent)
    assert response.status_code == 400
    assert response.text.startswith("Webhook Error:")
    assert gateway.payloads == [b'{"type": "checkout.session.completed"}']
    assert parent.subscription_status is None


def test_webhook_activates_subscription(client: TestClient, db: Session, parent: Parent) -> None:
    response = client.post("/api/webhooks/stripe", content=b"{}", headers={"Stripe-Signature": "valid"})

    db.refresh(parent)
    assert response.json() == {"received": True}
    assert parent.subscription_status == "active"
    assert parent.subscription_plan == "monthly"


def test_checkout_over_http(client: TestClient, settings: Settings, parent: Parent) -> None:
    token = create_access_token(ParentClaims(parent_id=parent.id), secret=settings.jwt_secret)

    response = client.post(
        "/api/subscriptions/create-checkout",
        json={"planType": "monthly", "addons": ["nicelist"]},
        headers=_bearer(token),
    )

    assert response.json() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}


def test_checkout_accepts_null_addons(client: TestClient, settings: Settings, parent: Parent) -> None:
    token = create_access_token(ParentClaims(parent_id=parent.id), secret=settings.jwt_secret)

    response = client.post(
        "/api/subscriptions/create-checkout",
        json={"planType": "monthly", "addons": None},
        headers=_bearer(token),
    )

    assert response.status_code == 200
    assert response.json()["sessionId"] == "cs_test_1"


def test_kid_registration_stores_any_age(client: TestClient, parent: Parent) -> None:
    response = client.post(
        "/api/auth/kid/register",
        json={"username": "teen", "password": "snow", "name": "Teen", "age": 19, "parentCode": "ABC123"},
    )

    assert response.status_code == 200
    assert response.json()["user"]["age"] == 19
