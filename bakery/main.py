"""
Bakery Storefront - FastAPI Backend Application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import structlog

from bakery.config import settings
from bakery.api import checkout, custom_orders, orders, stripe_connect
from bakery.payments.errors import PaymentError
from bakery.webhooks import stripe as stripe_webhooks

# Configure structured logging
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
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting bakery storefront API", version="1.0.0")
    yield
    logger.info("Shutting down bakery storefront API")


# Create FastAPI application
app = FastAPI(
    title="Bakery Storefront",
    description="Checkout, bespoke order payments and order reconciliation for a bakery",
    version="1.0.0",
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


@app.exception_handler(PaymentError)
async def payment_error_handler(request: Request, exc: PaymentError):
    """Render payment engine errors as {"detail": message}"""
    if exc.status_code >= 500:
        logger.error("Payment request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from bakery.database import SessionLocal

    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    # Check Redis
    try:
        from bakery.jobs.celery_app import celery_app
        celery_app.control.ping(timeout=1)
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"failed: {str(e)}"

    checks["stripe"] = "ok" if settings.stripe_api_key else "failed: not configured"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Storefront routers
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(custom_orders.router, prefix="/custom-orders", tags=["Custom Orders"])

# Admin routers
app.include_router(custom_orders.admin_router, prefix="/admin/custom-orders", tags=["Admin"])
app.include_router(orders.router, prefix="/admin/orders", tags=["Admin"])
app.include_router(stripe_connect.router, prefix="/admin/stripe", tags=["Admin"])

# Include webhook routers
app.include_router(stripe_webhooks.router, prefix="/webhooks/stripe", tags=["Webhooks"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bakery.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
