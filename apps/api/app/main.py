from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from redis.asyncio import Redis
from sqlalchemy.orm import Session, sessionmaker

from app.api.routes.auth import router as auth_router
from app.api.routes.billing import router as billing_router
from app.api.routes.catalog import router as catalog_router
from app.api.routes.elves import router as elves_router
from app.api.routes.letters import router as letters_router
from app.api.routes.parent import router as parent_router
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_json_logging
from app.core.rate_limit import RateLimitMiddleware
from app.core.request_logging import RequestLoggingMiddleware
from app.core.security_headers import SecurityHeadersMiddleware
from app.db.session import build_engine, build_session_factory
from app.schemas.common import HealthResponse
from app.services.billing import CheckoutGateway, StripeCheckoutGateway
from app.services.elf_replies import ElfReplyGenerator
from app.services.llm_provider import LLMProvider, get_llm_provider
from app.services.providers.config_validation import (
    validate_llm_provider_config_on_boot,
    validate_payment_config_on_boot,
    validate_runtime_security_on_boot,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    validate_llm_provider_config_on_boot(settings)
    validate_payment_config_on_boot(settings)
    validate_runtime_security_on_boot(settings)
    owns_redis = app.state.redis is None and settings.redis_url is not None
    if owns_redis:
        app.state.redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    try:
        yield
    finally:
        if owns_redis:
            await app.state.redis.aclose()
            app.state.redis = None


def create_app(
    settings: Settings | None = None,
    *,
    session_factory: sessionmaker[Session] | None = None,
    checkout_gateway: CheckoutGateway | None = None,
    llm_provider: LLMProvider | None = None,
    redis: Redis | None = None,
) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(title="north pole penpals api", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory or build_session_factory(build_engine(settings))
    app.state.checkout_gateway = checkout_gateway or StripeCheckoutGateway(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
    )
    app.state.reply_generator = ElfReplyGenerator(provider=llm_provider or get_llm_provider(settings))
    app.state.redis = redis

    register_exception_handlers(app)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_production)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Stripe-Signature", "X-Request-Id"],
    )
    app.include_router(auth_router)
    app.include_router(elves_router)
    app.include_router(letters_router)
    app.include_router(parent_router)
    app.include_router(billing_router)
    app.include_router(catalog_router)

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=datetime.now(UTC), env=settings.app_env)

    if settings.static_dir and Path(settings.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


setup_json_logging(default_settings.app_env)
app = create_app()


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
