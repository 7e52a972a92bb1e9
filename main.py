import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, get_settings
from db import CompanyStore, create_store
from errors import (
    CompanyNotFoundError,
    InvalidQueryError,
    RelayError,
    StoreError,
)
from logging_setup import init_logging
from routers import companies, submit
from services.relay import WebhookRelay

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CompanyStore] = None,
    relay: Optional[WebhookRelay] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: build and connect the company store
        if app.state.store is None:
            app.state.store = create_store(settings)
        await app.state.store.connect()
        yield
        # Shutdown: release store connections
        await app.state.store.close()

    app = FastAPI(
        title="Lead Lookup API",
        description="Forwards lead submissions to the enrichment workflow and serves the enriched company records",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.relay = relay or WebhookRelay(
        settings.webhook_url, timeout=settings.webhook_timeout_seconds
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        return _error(500, str(exc))

    @app.exception_handler(CompanyNotFoundError)
    async def not_found_handler(request: Request, exc: CompanyNotFoundError):
        return _error(404, "Company not found")

    @app.exception_handler(InvalidQueryError)
    async def invalid_query_handler(request: Request, exc: InvalidQueryError):
        return _error(400, str(exc))

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.warning("Store error on %s: %s", request.url.path, exc)
        return _error(500, str(exc))

    # Include routers
    app.include_router(submit.router)
    app.include_router(companies.router)

    @app.get("/")
    async def root():
        return {
            "name": "Lead Lookup API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


init_logging()
app = create_app()
