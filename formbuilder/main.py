import logging
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.engine import Engine

from formbuilder.core.config.logging_config import setup_logging
from formbuilder.core.config.settings import Settings, get_settings
from formbuilder.core.exceptions import error_body, register_exception_handlers
from formbuilder.core.rate_limit import client_key, create_rate_limiter
from formbuilder.core.security.auth import PasswordHasher, TokenService
from formbuilder.db.init_db import init_db
from formbuilder.db.session import create_db_engine, create_session_factory
from formbuilder.routers import auth, forms, health

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("formbuilder")
    logger.info(f"Starting {app.state.settings.PROJECT_NAME} in {app.state.settings.ENVIRONMENT} mode")

    yield

    logger.info("Shutting down, releasing connections")
    if app.state.rate_limiter:
        await app.state.rate_limiter.close()
    app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    redis=None,
) -> FastAPI:
    settings = settings or get_settings()

    # Setup logging
    logger = setup_logging(settings)
    error_logger = logging.getLogger("formbuilder.errors")

    engine = engine or create_db_engine(settings.DATABASE_URL)
    init_db(engine)

    docs_enabled = settings.is_development
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Build dynamic forms, collect responses and page through submissions.",
        version="1.0.0",
        openapi_url=f"{settings.API_PREFIX}/openapi.json" if docs_enabled else None,
        docs_url=f"{settings.API_PREFIX}/docs" if docs_enabled else None,
        redoc_url=f"{settings.API_PREFIX}/redoc" if docs_enabled else None,
        lifespan=lifespan,
    )

    # Store handles are built here and reached through app.state
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_service = TokenService.from_settings(settings)
    app.state.password_hasher = PasswordHasher.from_settings(settings)
    app.state.rate_limiter = create_rate_limiter(settings, redis) if settings.RATE_LIMIT_ENABLED else None

    # Rate limiting middleware, registered first so logging and headers wrap it
    @app.middleware("http")
    async def rate_limit(request: Request, call_next: Callable):
        limiter = request.app.state.rate_limiter
        key = client_key(request)
        if limiter is None or key is None:
            return await call_next(request)

        try:
            result = await limiter.hit(key)
        except RedisError as e:
            # Counter store unreachable, serve the request unlimited
            error_logger.error(f"Rate limiter unavailable, letting request through: {e}")
            return await call_next(request)

        headers = {
            "RateLimit-Limit": str(result.limit),
            "RateLimit-Remaining": str(result.remaining),
            "RateLimit-Reset": str(result.reset_after),
        }

        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {key}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error_body(
                    status.HTTP_429_TOO_MANY_REQUESTS,
                    "Too many requests, please try again later.",
                ),
                headers={**headers, "Retry-After": str(result.reset_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response

    # Middleware for request logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable):
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        logger.info(
            f"Method: {request.method} Path: {request.url.path} "
            f"Status: {response.status_code} Duration: {duration:.2f}s"
        )
        return response

    @app.middleware("http")
    async def security_headers(request: Request, call_next: Callable):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers with prefix
    api_prefix = settings.API_PREFIX
    app.include_router(auth.router, prefix=api_prefix)
    app.include_router(forms.router, prefix=api_prefix)
    app.include_router(health.router, prefix=api_prefix)

    return app
