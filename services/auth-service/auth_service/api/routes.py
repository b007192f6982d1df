"""HTTP route definitions for the auth service."""

from __future__ import annotations

import hashlib
import logging

import redis
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from schemas import Credentials, TokenResponse

from ..config import get_settings
from ..domain.account import normalize_email
from ..domain.contracts import CredentialsInput
from ..domain.errors import AuthError, FailureKind
from ..domain.service import AuthService
from ..security.rate_limiter import SlidingWindowRateLimiter
from ..security.redis_rate_limiter import RedisSlidingWindowRateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")

AUTH_REQUESTS = Counter(
    "auth_requests_total",
    "Register and login requests by outcome.",
    ["operation", "outcome"],
)

# Duplicate registrations answer exactly like malformed input.
FAILURE_RESPONSES: dict[FailureKind, tuple[int, str]] = {
    FailureKind.validation: (status.HTTP_400_BAD_REQUEST, "invalid request"),
    FailureKind.duplicate_account: (status.HTTP_400_BAD_REQUEST, "invalid request"),
    FailureKind.invalid_credentials: (status.HTTP_401_UNAUTHORIZED, "invalid credentials"),
    FailureKind.internal: (status.HTTP_500_INTERNAL_SERVER_ERROR, "internal error"),
}

settings = get_settings()


def _build_rate_limiter() -> SlidingWindowRateLimiter | RedisSlidingWindowRateLimiter:
    """Instantiate the configured rate limiter backend, preferring Redis when available."""
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        try:
            client = redis.from_url(settings.redis_url)
            # ensure connectivity early to fail fast and fall back
            client.ping()
            logger.info("rate limiter configured for redis backend")
            return RedisSlidingWindowRateLimiter(
                client,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )
        except (redis.RedisError, ValueError) as exc:
            logger.warning("redis rate limiter unavailable, falling back to in-memory: %s", exc)

    logger.info("rate limiter using in-memory backend")
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


rate_limiter = _build_rate_limiter()


def get_service(request: Request) -> AuthService:
    """Resolve the `AuthService` stored on the FastAPI application state."""
    service: AuthService = request.app.state.auth_service
    return service


def _rate_key(operation: str, email: str) -> str:
    digest = hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()[:16]
    return f"{operation}:{digest}"


def _enforce_rate_limit(operation: str, email: str) -> None:
    if not rate_limiter.allow(_rate_key(operation, email)):
        AUTH_REQUESTS.labels(operation=operation, outcome="rate_limited").inc()
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="rate limited")


def _http_error_from_auth_error(operation: str, exc: AuthError) -> HTTPException:
    AUTH_REQUESTS.labels(operation=operation, outcome=exc.kind.value).inc()
    status_code, detail = FAILURE_RESPONSES[exc.kind]
    return HTTPException(status_code=status_code, detail=detail)


@router.post("/register", response_model=TokenResponse)
def register(
    payload: Credentials,
    service: AuthService = Depends(get_service),
) -> TokenResponse:
    """Create an account and return a bearer token bound to it."""
    _enforce_rate_limit("register", payload.email)
    try:
        token = service.register(CredentialsInput(email=payload.email, password=payload.password))
    except AuthError as exc:
        raise _http_error_from_auth_error("register", exc) from exc
    AUTH_REQUESTS.labels(operation="register", outcome="success").inc()
    return TokenResponse(token=token)


@router.post("/login", response_model=TokenResponse)
def login(
    payload: Credentials,
    service: AuthService = Depends(get_service),
) -> TokenResponse:
    """Exchange valid credentials for a bearer token."""
    _enforce_rate_limit("login", payload.email)
    try:
        token = service.login(CredentialsInput(email=payload.email, password=payload.password))
    except AuthError as exc:
        raise _http_error_from_auth_error("login", exc) from exc
    AUTH_REQUESTS.labels(operation="login", outcome="success").inc()
    return TokenResponse(token=token)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Submitted input may contain a password and is never echoed.
    status_code, detail = FAILURE_RESPONSES[FailureKind.validation]
    return JSONResponse(status_code=status_code, content={"detail": detail})


def install_exception_handlers(app: FastAPI) -> None:
    """Register handlers that keep request-decoding errors free of submitted data."""
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
