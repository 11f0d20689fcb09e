"""
Supplier Price Check API.

Wires settings, structured logging, error handlers and the routers.
Run locally with: python main.py
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog
from datetime import datetime, timezone

from config import settings, check_connection
from exceptions import AppError

logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration and check the document store on startup."""
    logger.info(
        "application_starting",
        environment=settings.environment,
        extraction_configured=settings.extraction_configured,
        strict_mappings=settings.strict_mappings
    )

    store = check_connection()
    if store["status"] == "healthy":
        logger.info("document_store_connected", documents=store["documents_count"])
    else:
        # The API still starts; requests touching the store return 500
        logger.error("document_store_unavailable", error=store.get("error"))

    yield

    logger.info("application_stopped")


app = FastAPI(
    title="Supplier Price Check",
    description="Price list extraction, product reconciliation and supplier price comparison",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Service status plus document store reachability."""
    store = check_connection()
    return {
        "status": "healthy" if store["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": store
    }


@app.get("/")
async def root():
    """API name, version and route prefixes."""
    return {
        "name": "Supplier Price Check API",
        "version": API_VERSION,
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
        "endpoints": {
            "auth": "/api/auth",
            "suppliers": "/api/suppliers",
            "catalog": "/api/catalog",
            "uploads": "/api/uploads"
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """AppErrors raised before a route body runs, e.g. in auth dependencies."""
    logger.warning(
        "request_rejected",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything else becomes a 500 INTERNAL_ERROR."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# ===================
# ROUTERS
# ===================
from routes import auth_router, suppliers_router, catalog_router, uploads_router

app.include_router(auth_router)
app.include_router(suppliers_router)
app.include_router(catalog_router)
app.include_router(uploads_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
