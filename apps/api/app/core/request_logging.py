from __future__ import annotations

import logging
from time import perf_counter
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("penpals.api.request")

REQUEST_ID_HEADER = "X-Request-Id"


def _resolve_route(request: Request) -> str:
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    if isinstance(route_path, str):
        return route_path
    return request.url.path


def _request_fields(request: Request, request_id: str) -> dict[str, object]:
    return {
        "request_id": request_id,
        "user_id": getattr(request.state, "user_id", None),
        "role": getattr(request.state, "role", None),
        "route": _resolve_route(request),
        "method": request.method,
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.failed",
                extra={
                    **_request_fields(request, request_id),
                    "status_code": 500,
                    "execution_time_ms": round((perf_counter() - started) * 1000, 2),
                },
            )
            raise

        logger.info(
            "request.completed",
            extra={
                **_request_fields(request, request_id),
                "status_code": response.status_code,
                "execution_time_ms": round((perf_counter() - started) * 1000, 2),
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
