"""
CORS header middleware.

Every response, success or error, carries the same CORS header set.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backend.app.core.config import settings

ALLOWED_HEADERS = (
    "Content-Type,X-Amz-Date,Authorization,X-Api-Key,"
    "X-Amz-Security-Token,X-Amz-User-Agent,X-Correlation-ID"
)


def get_cors_headers() -> dict:
    return {
        "Access-Control-Allow-Origin": settings.allowed_origins,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }


class CorsHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(get_cors_headers())
        return response
