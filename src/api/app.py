"""
FastAPI Application Factory.

Usage:
    # Development
    uvicorn api.app:create_app --factory --reload

    # Production
    uvicorn api.app:app --host 0.0.0.0 --port 8080 --workers 4

    # Or use the convenience function
    from api.app import create_app
    app = create_app()
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog.store import CatalogError, get_catalog
from config.settings import get_settings
from core.exceptions import AdvisorError, AnalysisFailed
from core.logging import configure_logging, get_logger
from core.middleware import RequestTracingMiddleware
from integrations.identity import IdentityError
from storage.repository import StorageError
from tutorials.resolver import TutorialError, get_tutorial_resolver


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Runs on startup:
    - Initialize logging
    - Load the product catalog and tutorial tables

    Runs on shutdown:
    - Log shutdown
    """
    settings = get_settings()

    configure_logging(
        json_logs=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    logger.info(
        "Starting beauty advisor API",
        environment=settings.environment,
        port=settings.port,
    )

    # A catalog failure is reported by /ready rather than blocking startup.
    try:
        catalog = get_catalog()
        logger.info("Catalog loaded", products=len(catalog))
    except CatalogError as e:
        logger.error("Could not load product catalog", error=str(e))

    try:
        get_tutorial_resolver()
    except TutorialError as e:
        logger.error("Could not load tutorial tables", error=str(e))

    yield

    logger.info("Shutting down beauty advisor API")


# =============================================================================
# Exception handlers
# =============================================================================

async def advisor_error_handler(request: Request, exc: AdvisorError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        error=exc.message,
    )
    body = {"message": exc.detail}
    if isinstance(exc, AnalysisFailed):
        body["outcome"] = "failed"
    return JSONResponse(status_code=exc.status_code, content=body)


async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc)})


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error", error=str(exc))
    return JSONResponse(status_code=503, content={"message": "Storage unavailable"})


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    logger.error("Catalog error", error=str(exc))
    return JSONResponse(status_code=503, content={"message": "Product catalog unavailable"})


async def tutorial_error_handler(request: Request, exc: TutorialError) -> JSONResponse:
    logger.error("Tutorial tables error", error=str(exc))
    return JSONResponse(status_code=503, content={"message": "Tutorials unavailable"})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"message": "Invalid request", "errors": errors},
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="Beauty Advisor API",
        description="""
        Selfie-based skin analysis with matched product and tutorial recommendations.

        ## Main Endpoints

        - `/api/analyze` - Analyze a selfie
        - `/api/products`, `/api/recommendations` - Catalog and matching
        - `/api/tutorials`, `/api/verify-youtube` - Tutorial videos
        - `/api/user/*` - Saved analyses, products and profile

        ## Health Checks

        - `/health` - Basic health check
        - `/health/detailed` - Detailed health with dependency status
        - `/ready` - Kubernetes readiness probe
        - `/live` - Kubernetes liveness probe
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # =========================================================================
    # Middleware (order matters - first added = outermost)
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request tracing (adds X-Request-ID, logs timing)
    app.add_middleware(RequestTracingMiddleware)

    # =========================================================================
    # Error handlers
    # =========================================================================

    app.add_exception_handler(AdvisorError, advisor_error_handler)
    app.add_exception_handler(IdentityError, identity_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(TutorialError, tutorial_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # =========================================================================
    # Routes
    # =========================================================================

    from api.routes.health import router as health_router
    from api.routes.auth import router as auth_router
    from api.routes.analysis import router as analysis_router
    from api.routes.products import router as products_router
    from api.routes.tutorials import router as tutorials_router
    from api.routes.users import router as users_router

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(analysis_router)
    app.include_router(products_router)
    app.include_router(tutorials_router)
    app.include_router(users_router)

    return app


# Create default app instance for uvicorn
# Usage: uvicorn api.app:app
app = create_app()


def get_app() -> FastAPI:
    """Get the application instance (for ASGI servers)."""
    return app
