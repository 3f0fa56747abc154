import os

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from .exceptions import ProblemDetail

# Rebuilding every rating is the most expensive read in the API.
RANKINGS_RATE_LIMIT = os.getenv("LAPRANK_RANKINGS_RATE_LIMIT", "30/minute")


def _rate_limits_disabled() -> bool:
    return (os.getenv("DISABLE_RATE_LIMITS") or "").lower() == "true"


def _get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        if parts:
            return parts[-1]
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else ""


limiter = Limiter(key_func=_get_client_ip, enabled=not _rate_limits_disabled())


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else ""
    if detail:
        message = f"rate limit exceeded: {detail}"
    else:
        message = "rate limit exceeded: please wait before sending another request."
    problem = ProblemDetail(
        title="Too Many Requests",
        detail=message,
        status=429,
        code="rate_limit_exceeded",
        instance=str(request.url.path),
    )
    return JSONResponse(
        status_code=429,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )
