from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("penpals.api.rate_limit")

RATE_LIMITED_PREFIX = "/api/"
LOGIN_PATHS = frozenset({"/api/auth/parent/login", "/api/auth/kid/login"})


@dataclass(frozen=True)
class RateLimitRule:
    key_prefix: str
    limit: int
    window_seconds: int


GLOBAL_RULE = RateLimitRule(key_prefix="api", limit=100, window_seconds=15 * 60)
LOGIN_RULE = RateLimitRule(key_prefix="login", limit=10, window_seconds=5 * 60)


def _extract_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def _increment_and_check(redis: Redis, *, rule: RateLimitRule, ip: str) -> bool:
    key = f"penpals:rate:{rule.key_prefix}:{ip}"
    value = await redis.incr(key)
    if value == 1:
        await redis.expire(key, rule.window_seconds)
    return int(value) <= rule.limit


def _too_many_requests(rule: RateLimitRule) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"code": "RATE_LIMIT", "message": "Too many requests"},
        headers={"Retry-After": str(rule.window_seconds)},
    )


def _rules_for(request: Request) -> list[RateLimitRule]:
    rules = [GLOBAL_RULE]
    if request.method.upper() == "POST" and request.url.path in LOGIN_PATHS:
        rules.append(LOGIN_RULE)
    return rules


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis: Redis | None = getattr(request.app.state, "redis", None)
        if redis is None or not request.url.path.startswith(RATE_LIMITED_PREFIX):
            return await call_next(request)

        ip = _extract_ip(request)
        try:
            for rule in _rules_for(request):
                if not await _increment_and_check(redis, rule=rule, ip=ip):
                    return _too_many_requests(rule)
        except RedisError:
            # Keep API available if Redis is temporarily unavailable.
            logger.warning("rate_limit.redis_unavailable", extra={"route": request.url.path})

        return await call_next(request)
