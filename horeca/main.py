"""HoReCa catalog API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from horeca.api.admin import router as admin_router
from horeca.api.ai import router as ai_router
from horeca.api.business_types import router as business_types_router
from horeca.api.cart import router as cart_router
from horeca.api.enquiries import router as enquiries_router
from horeca.api.errors import domain_error_response, error_response
from horeca.api.health import router as health_router
from horeca.api.idempotency import setup_idempotency_middleware
from horeca.api.middleware import setup_middleware
from horeca.api.products import router as products_router
from horeca.api.taxonomy import brands_router, categories_router
from horeca.api.upload import router as upload_router
from horeca.catalog.repository import get_product_repository
from horeca.catalog.service import get_brand_store, get_category_store
from horeca.domain.exceptions import DomainError
from horeca.infrastructure.config import settings
from horeca.infrastructure.logging import configure_logging

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    # Startup
    logger.info(
        "Starting HoReCa catalog API",
        version=settings.api_version,
        debug=settings.debug,
    )
    logger.info(
        "Catalog loaded",
        product_count=get_product_repository().count(),
        category_count=get_category_store().count(),
        brand_count=get_brand_store().count(),
        ai_configured=bool(settings.gemini_api_key),
    )

    yield

    # Shutdown
    logger.info("Shutting down HoReCa catalog API")


app = FastAPI(
    title="HoReCa Catalog API",
    description="Hospitality equipment catalog, enquiry intake and admin back office",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup idempotency middleware (inside the custom stack, so replays carry a request ID)
setup_idempotency_middleware(app)

# Setup custom middleware (request ID, API key auth, deadline, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router)
app.include_router(categories_router)
app.include_router(brands_router)
app.include_router(business_types_router)
app.include_router(enquiries_router)
app.include_router(cart_router)
app.include_router(admin_router)
app.include_router(ai_router)
app.include_router(upload_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors to their HTTP status and the error envelope."""
    response = domain_error_response(request, exc)
    log = logger.error if response.status_code >= 500 else logger.info
    log(
        "Domain error",
        path=request.url.path,
        method=request.method,
        error_code=exc.error_code,
        status_code=response.status_code,
        error=exc.message,
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with per-field details."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Request validation failed",
        "VALIDATION_ERROR",
        {"errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "ERROR"
        message = str(detail)
        details = {}
    return error_response(request, exc.status_code, message, error_code, details, headers=exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An internal error occurred",
        "INTERNAL_ERROR",
    )
