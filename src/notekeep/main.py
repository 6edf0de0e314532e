"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis pool, database
monitor, engine disposal). Middleware, CORS, exception handlers and
routers are all registered here.

Every response, success or failure, uses the envelope from
schemas/envelope.py. Handlers never write error responses themselves:
they raise, and exactly one handler below (or UnhandledErrorMiddleware,
for unexpected exceptions) turns the exception into the single response
for that request.
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from notekeep import __version__
from notekeep.api import api_router, health_router
from notekeep.captcha import MemoryChallengeStore
from notekeep.config import Settings, settings
from notekeep.db.engine import build_engine, build_session_factory
from notekeep.errors import NotekeepError, ServerError
from notekeep.log import configure_logging
from notekeep.middleware.errors import unexpected_error_response
from notekeep.schemas.envelope import fail

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    Everything here reads the Settings the app was built with.
    """
    cfg: Settings = app.state.settings
    engine = app.state.engine
    logger.info(
        "notekeep.starting",
        version=__version__,
        environment=cfg.environment,
        port=cfg.port,
    )

    from notekeep.cache.redis import close_redis, init_redis
    try:
        await init_redis(cfg.redis_url, timeout=cfg.redis_timeout)
        logger.info("notekeep.redis_connected", url=cfg.redis_url)
    except Exception as e:
        # Rate limiting is skipped without Redis; the redis captcha store
        # answers 500 until it is reachable
        logger.warning("notekeep.redis_unavailable", error=str(e))

    from notekeep.db.monitor import DatabaseMonitor
    monitor = DatabaseMonitor(engine, cfg)
    app.state.db_monitor = monitor
    monitor_task = asyncio.create_task(monitor.run_loop())

    yield

    logger.info("notekeep.shutdown")

    monitor.stop()
    monitor_task.cancel()
    try:
        await monitor_task
    except asyncio.CancelledError:
        pass

    await close_redis()
    await engine.dispose()


# ─── Exception handlers ─────────────────────────────────


def register_exception_handlers(app: FastAPI, cfg: Settings) -> None:
    """Map every failure onto the response envelope."""

    @app.exception_handler(NotekeepError)
    async def handle_app_error(request: Request, exc: NotekeepError):
        if isinstance(exc, ServerError):
            logger.error(
                "request.server_error",
                code=exc.code,
                path=request.url.path,
                method=request.method,
                details=exc.details,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(exc.message, exc.code, exc.details),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(p) for p in err["loc"] if p != "body"),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=fail("Invalid request", "validation_error", details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            content = fail("Route not found", "not_found", {"path": request.url.path})
        else:
            content = fail(str(exc.detail), f"http_{exc.status_code}")
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        # Only reached for failures raised by middleware; UnhandledErrorMiddleware
        # converts the ones raised by routes and dependencies
        logger.exception(
            "request.unhandled_error",
            path=request.url.path,
            method=request.method,
        )
        return unexpected_error_response(exc, expose_details=not cfg.is_production)


def create_app(cfg: Settings = settings) -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(cfg)

    app = FastAPI(
        title="Notekeep",
        description="Personal notes API with captcha-gated accounts",
        version=__version__,
        lifespan=lifespan,
    )

    # Per-app state: dependencies and the lifespan read these, never module globals
    app.state.settings = cfg
    app.state.engine = build_engine(cfg.database_url, echo=cfg.debug)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.challenge_store = (
        MemoryChallengeStore() if cfg.captcha_store == "memory" else None
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: AccessLog → Security → RateLimit → CORS → Session
    #               → UnhandledError → handler

    from notekeep.middleware.access_log import AccessLogMiddleware
    from notekeep.middleware.errors import UnhandledErrorMiddleware
    from notekeep.middleware.rate_limit import RateLimitMiddleware
    from notekeep.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(UnhandledErrorMiddleware, expose_details=not cfg.is_production)
    app.add_middleware(
        SessionMiddleware,
        secret_key=cfg.session_secret,
        session_cookie=cfg.session_cookie,
        max_age=cfg.captcha_ttl_seconds,
        same_site="lax",
        https_only=cfg.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=cfg.rate_limit_rpm,
        auth_rpm=cfg.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware, hsts=cfg.is_production)
    app.add_middleware(AccessLogMiddleware)

    register_exception_handlers(app, cfg)

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: notekeep.main:app)
app = create_app()
