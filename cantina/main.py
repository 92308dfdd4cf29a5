"""
Cantina - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import structlog

from cantina.config import settings, validate_settings
from cantina.errors import CantinaError
from cantina.events import broadcaster
from cantina.api import auth, customers, orders, debts, pix, events

VERSION = "1.0.0"


def configure_logging() -> None:
    """Configure structured logging"""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    validate_settings(settings)
    logger.info("Starting Cantina API", version=VERSION, environment=settings.environment)
    yield
    broadcaster.close_all()
    logger.info("Shutting down Cantina API")


# Create FastAPI application
app = FastAPI(
    title="Cantina",
    description="Canteen ordering: orders, PIX payments and pay-later debts",
    version=VERSION,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CantinaError)
async def handle_cantina_error(request: Request, exc: CantinaError):
    """Map domain errors to JSON responses"""
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error_type=type(exc).__name__, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "api",
        "version": VERSION,
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from cantina.database import SessionLocal

    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.error("Readiness check failed", check="database", error=str(e))
        checks["database"] = "failed"

    checks["event_clients"] = broadcaster.client_count

    all_ok = checks["database"] == "ok"

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )


# Include API routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(customers.router, prefix="/customers", tags=["Customers"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(debts.router, prefix="/debts", tags=["Debts"])
app.include_router(pix.router, prefix="/pix", tags=["PIX"])
app.include_router(events.router, prefix="/events", tags=["Events"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cantina.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
