"""FastAPI application entry point.

Wires together: middleware, exception handlers, routes, metrics.
Settings are validated once at startup and injected into every service
through app.state.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from oura.adapters.factory import ClientFactory, make_client_factory
from oura.aggregator import BatchSummaryAggregator
from oura.api import router as oura_router
from oura.fetcher import PatientDataFetcher
from oura.repository import PatientLinkRepository
from oura.store import KeyStore, create_key_store
from oura.webhook import WebhookVerifier
from shared.config import Settings, get_settings
from shared.exceptions import ProblemDetailError, SignatureError
from shared.logging import configure_logging
from shared.metrics import create_metrics_app
from shared.middleware import (
    RequestIdMiddleware,
    SecurityHeadersMiddleware,
    http_exception_handler,
    problem_detail_handler,
    request_validation_handler,
    signature_error_handler,
    unhandled_exception_handler,
)

logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    *,
    key_store: KeyStore | None = None,
    client_factory: ClientFactory | None = None,
) -> FastAPI:
    """Build the application. Tests pass their own store and client factory."""
    settings = settings or get_settings()
    store = key_store or create_key_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle."""
        configure_logging(json_output=settings.is_production, level=settings.log_level)
        logger.info(
            "app_starting",
            service=settings.service_name,
            environment=settings.environment,
            key_store="redis" if settings.redis_url else "file",
            webhooks_configured=bool(settings.verification_token and settings.client_secret),
        )
        yield
        await store.close()
        logger.info("app_shutting_down")

    app = FastAPI(
        title="Oura Patient Service API",
        description=(
            "Links patients to Oura Ring accounts, proxies their activity, sleep and "
            "readiness data, aggregates summaries and receives Oura webhooks."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    links = PatientLinkRepository(store)
    fetcher = PatientDataFetcher(
        links,
        client_factory or make_client_factory(settings),
        window_days=settings.default_window_days,
    )
    app.state.settings = settings
    app.state.links = links
    app.state.fetcher = fetcher
    app.state.aggregator = BatchSummaryAggregator(fetcher)
    app.state.verifier = WebhookVerifier(settings.verification_token, settings.client_secret)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    # All errors emit application/problem+json (RFC 9457), except webhook 401s (text)
    app.add_exception_handler(SignatureError, signature_error_handler)
    app.add_exception_handler(ProblemDetailError, problem_detail_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(oura_router)

    app.mount("/metrics", create_metrics_app())

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "service": settings.service_name,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
