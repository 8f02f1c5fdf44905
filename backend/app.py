from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .auth.models import Role
from .auth.rate_limit import RateLimiter
from .auth.routes import password_router
from .auth.routes import router as auth_router
from .auth.users import create_user
from .catalog.data_store import load_catalog
from .catalog.routes import router as catalog_router
from .config import DEFAULT_APP_CONFIG, AppConfig, configure_logging
from .errors import AppError, InternalError
from .notifications.config import (
    DEFAULT_EMAIL_CONFIG,
    DEFAULT_QUEUE_CONFIG,
    EmailConfig,
    QueueConfig,
)
from .notifications.dispatcher import EmailDispatcher
from .notifications.queue import EmailQueue
from .notifications.routes import router as email_queue_router
from .notifications.transport import EmailPort, SmtpEmailAdapter
from .orders.routes import router as orders_router
from .payments.config import DEFAULT_STRIPE_CONFIG, StripeConfig
from .payments.gateway import PaymentGateway
from .payments.routes import router as payments_router
from .payments.service import PaymentService
from .payments.stripe_gateway import StripeGateway
from .recommendations.routes import router as recommendations_router
from .storage.document_store import DocumentStore
from .storage.object_store import LocalObjectStore, ObjectStore

logger = logging.getLogger(__name__)


def _seed_admin(store: DocumentStore, config: AppConfig) -> None:
    if not (config.admin_email and config.admin_password):
        return
    email = config.admin_email.strip().lower()
    if store.users.find_one(lambda u: u.email == email):
        return
    create_user(
        store, "Administrator", email, "0000000", config.admin_password,
        role=Role.admin, is_verified=True,
    )
    logger.info("Created bootstrap admin %s", email)


def create_app(
    config: AppConfig | None = None,
    *,
    store: DocumentStore | None = None,
    object_store: ObjectStore | None = None,
    gateway: PaymentGateway | None = None,
    email_transport: EmailPort | None = None,
    email_queue: EmailQueue | None = None,
    email_config: EmailConfig = DEFAULT_EMAIL_CONFIG,
    queue_config: QueueConfig = DEFAULT_QUEUE_CONFIG,
    stripe_config: StripeConfig = DEFAULT_STRIPE_CONFIG,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Build the application and wire every collaborator onto ``app.state``."""
    config = config or DEFAULT_APP_CONFIG
    configure_logging(config.log_level)

    store = store if store is not None else DocumentStore()
    if config.seed_catalog and not len(store.venues):
        load_catalog(store, config.catalog_path)
    _seed_admin(store, config)

    if email_queue is None:
        dispatcher = EmailDispatcher(email_transport or SmtpEmailAdapter(email_config), email_config)
        email_queue = EmailQueue(dispatcher.handlers(), queue_config)
    if gateway is None:
        if not stripe_config.configured:
            logger.warning("Stripe credentials are not set; online payments will fail")
        gateway = StripeGateway(stripe_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.email_queue.shutdown()

    app = FastAPI(title="Wedding Planner API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        max_age=config.session_max_age,
    )

    app.state.config = config
    app.state.store = store
    app.state.object_store = object_store or LocalObjectStore(config.upload_dir)
    app.state.email_queue = email_queue
    app.state.payment_service = PaymentService(store, gateway, email_queue)
    app.state.rate_limiter = rate_limiter or RateLimiter()

    # ── Error handlers ───────────────────────────────────────────────────

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content={"detail": error.message})

    # ── Routes ───────────────────────────────────────────────────────────

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(password_router)
    app.include_router(catalog_router)
    app.include_router(recommendations_router)
    app.include_router(orders_router)
    app.include_router(payments_router)
    app.include_router(email_queue_router)
    return app


app = create_app()
