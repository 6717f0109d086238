from __future__ import annotations

import logging

from app.core.config import Settings

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDER_KEYS = {"noop", "openai"}
INSECURE_JWT_SECRETS = {"", "your-super-secret-jwt-key-change-in-production", "change-me"}


def validate_llm_provider_config(settings: Settings) -> tuple[bool, list[str]]:
    warnings: list[str] = []
    provider = (settings.llm_provider_key or "noop").strip().lower()
    if provider not in SUPPORTED_PROVIDER_KEYS:
        warnings.append(f"Unsupported LLM provider '{provider}'. Falling back to noop.")
        return False, warnings

    if provider == "openai":
        if not settings.openai_api_key:
            warnings.append("LLM provider is openai but OPENAI_API_KEY is missing. Elf replies use fallback templates.")
        if not settings.llm_model:
            warnings.append("LLM provider is openai but LLM_MODEL is missing. Elf replies use fallback templates.")
        if warnings:
            return False, warnings

    return True, warnings


def validate_llm_provider_config_on_boot(settings: Settings) -> None:
    valid, warnings = validate_llm_provider_config(settings)
    for item in warnings:
        logger.warning(item)
    if valid:
        logger.info("LLM provider config validated successfully.")
    else:
        logger.warning("LLM provider disabled due to config issues. App will continue with noop provider.")


def validate_payment_config_on_boot(settings: Settings) -> None:
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is missing. Checkout sessions will fail.")
    if not settings.stripe_webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET is missing. Payment webhooks will be rejected.")


def validate_runtime_security_on_boot(settings: Settings) -> None:
    origins = settings.allowed_origins

    if settings.is_production:
        if not origins:
            raise RuntimeError("FRONTEND_URL must be set in production.")
        if "*" in origins:
            raise RuntimeError("Wildcard CORS origin is not allowed in production.")
        if any("localhost" in origin or "127.0.0.1" in origin for origin in origins):
            raise RuntimeError("localhost/127.0.0.1 CORS origins are not allowed in production.")
        if settings.jwt_secret.strip() in INSECURE_JWT_SECRETS:
            raise RuntimeError("JWT_SECRET must be set to a private value in production.")
    elif settings.jwt_secret.strip() in INSECURE_JWT_SECRETS:
        logger.warning("JWT_SECRET is using a placeholder value.")
