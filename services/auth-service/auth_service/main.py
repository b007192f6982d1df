"""FastAPI application wiring for the auth service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.routes import install_exception_handlers, router as v1_router
from .config import get_settings
from .domain.service import AuthService
from .repository import AccountRepository
from .security.passwords import PasswordHasher

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, hasher, service) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False, timeout=settings.database_timeout_seconds)
    pool.open()
    app.state.pool = pool
    app.state.auth_service = AuthService(
        AccountRepository(pool, timeout_seconds=settings.database_timeout_seconds),
        PasswordHasher(rounds=settings.bcrypt_rounds),
        signing_key=settings.signing_key,
        token_duration=settings.token_duration,
        issuer=settings.jwt_issuer,
        password_min_length=settings.password_min_length,
    )
    try:
        yield
    finally:
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
    max_age=600,
)
install_exception_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus counters in the text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(v1_router)
