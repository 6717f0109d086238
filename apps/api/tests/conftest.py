from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

os.environ.setdefault("PENPALS_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("PENPALS_JWT_SECRET", "test-secret")
os.environ.setdefault("PENPALS_APP_ENV", "test")
os.environ.setdefault("PENPALS_STATIC_DIR", "")

from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from app import models  # noqa: E402
from app.core.config import Settings  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import build_engine, build_session_factory  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-secret",
        database_url="sqlite+pysqlite:///:memory:",
        app_env="test",
        frontend_url="http://localhost:3000",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret="whsec_test_secret",
        openai_api_key=None,
        static_dir=None,
    )


@pytest.fixture
def session_factory(settings: Settings) -> Iterator[sessionmaker[Session]]:
    engine = build_engine(settings)
    Base.metadata.create_all(engine)
    try:
        yield build_session_factory(engine)
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def elves(db: Session) -> list[models.Elf]:
    rows = [
        models.Elf(name="Jingle", job="Head Toy Tester", personality="Bouncy and giggly", emoji="🧸"),
        models.Elf(name="Sprinkle", job="Cookie Baker", personality="Warm and cozy", emoji="🍪"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def parent(db: Session) -> models.Parent:
    row = models.Parent(
        email="parent@test.com",
        password="x",
        name="Parent",
        parent_code="ABC123",
        response_mode=models.ResponseMode.MANUAL.value,
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def kid(db: Session, parent: models.Parent) -> models.Kid:
    row = models.Kid(parent_id=parent.id, username="kiddo", password="x", name="Kiddo", age=7)
    db.add(row)
    db.commit()
    return row
