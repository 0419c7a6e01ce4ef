"""
Customer Service - FastAPI Application
Customer records, login tokens and token validation
"""

import time
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, get_settings
from app.routes import customers, health
from app.services.customer_service import CustomerService
from app.services.errors import ServiceError
from app.services.security_service import SecurityService
from app.utils.database import close_pool, create_pool, init_schema
from app.utils.logger import get_request_logger, setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler"""
    settings: Settings = app.state.settings
    logger.info("Customer Service starting up...")
    settings.log_config()

    pool = await create_pool(settings)
    app.state.pool = pool

    try:
        if settings.create_schema:
            await init_schema(pool)

        app.state.customer_service = CustomerService(
            pool,
            bcrypt_rounds=settings.bcrypt_rounds,
            token_ttl=timedelta(minutes=settings.token_ttl_minutes)
        )
        app.state.security_service = SecurityService(pool)

        try:
            await app.state.security_service.purge_expired_tokens()
        except ServiceError as e:
            logger.warning(f"Expired token cleanup skipped: {e}")

        logger.info("Customer Service startup complete")

        yield
    finally:
        logger.info("Customer Service shutting down...")
        await close_pool(pool)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Explicit settings; environment settings when omitted

    Returns:
        FastAPI: configured application
    """
    settings = settings or get_settings()
    setup_logging(settings.logging_config_path, settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        description="Customer records, login tokens and token validation",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    request_logger = get_request_logger()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every request with its status and latency"""
        start = time.perf_counter()
        response = await call_next(request)
        request_logger.log_request(
            request.method,
            request.url.path,
            response.status_code,
            time.perf_counter() - start,
            request.client.host if request.client else None
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Custom HTTP exception handler"""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": exc.detail,
                "status_code": exc.status_code
            },
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed or invalid request bodies are client errors"""
        details = jsonable_errors(exc)
        logger.info(f"Bad request on {request.method} {request.url.path}: {details}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": True,
                "message": "Bad request",
                "status_code": status.HTTP_400_BAD_REQUEST,
                "details": details
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Anything unexpected is a 500 without internals"""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "Internal server error",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
            }
        )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(customers.router, prefix="/customers", tags=["Customers"])
    app.include_router(customers.api_router, prefix="/api/customers", tags=["Customer API"])

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "customer-service",
            "version": settings.app_version,
            "status": "running",
            "docs": "/docs"
        }

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without the raw input, which may hold a password"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


app = create_app()


def run():
    """Console entry point"""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
