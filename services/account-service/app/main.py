"""FastAPI application wiring for the account service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import install_exception_handlers
from .api.routes import router as v1_router
from .config import Settings, get_settings
from .domain.ports import AccountStore
from .domain.service import AccountService
from .repository import AccountRepository
from .security.authenticator import AuthenticationMiddleware, RequestAuthenticator
from .security.passwords import BcryptPasswordHasher
from .security.tokens import TokenService

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def build_services(app: FastAPI, repository: AccountStore, settings: Settings) -> AccountService:
    """Wire the account service and request authenticator onto ``app.state``."""
    tokens = TokenService(settings)
    service = AccountService(repository, BcryptPasswordHasher(settings.bcrypt_rounds), tokens)
    app.state.account_service = service
    app.state.authenticator = RequestAuthenticator(
        tokens, service.load_principal, settings.public_paths
    )
    return service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    app.state.pool = pool
    build_services(app, AccountRepository(pool), settings)
    try:
        yield
    finally:
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(AuthenticationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)
install_exception_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics", tags=["health"])
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(v1_router)


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("app.main:app", host=settings.http_host, port=settings.http_port)
