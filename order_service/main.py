"""
Orders Microservice
Places orders against the customer and product catalog with atomic stock reconciliation
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from order_service.core_settings import get_settings
from order_service.api.routes import router as orders_router
from order_service.api.catalog import customers_router, products_router
from order_service.application.validator import stock_policy_for
from order_service.infrastructure.db import engine, init_models

settings = get_settings()
SERVICE_DESCRIPTION = "Order placement microservice"

setup_logging(
    service_name=settings.SERVICE_NAME,
    level=settings.LOG_LEVEL,
    environment=settings.ENVIRONMENT,
    version=settings.SERVICE_VERSION,
)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.SERVICE_NAME} version {settings.SERVICE_VERSION}")

    # fail fast on a misconfigured stock policy
    stock_policy_for(settings.STOCK_CHECK_MODE)

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception:
        logger.exception("Failed to initialize database models")
        raise

    logger.info(
        f"{settings.SERVICE_NAME} started successfully",
        extra={'extra_fields': {'stock_check_mode': settings.STOCK_CHECK_MODE}}
    )

    yield

    logger.info(f"Shutting down {settings.SERVICE_NAME}")

app = FastAPI(
    title=settings.SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

health_service = ServiceHealth(settings.SERVICE_NAME, settings.SERVICE_VERSION, engine=engine)
app.include_router(health_service.create_health_router())

app.include_router(customers_router)
app.include_router(products_router)
app.include_router(orders_router)

@app.get("/")
async def root():
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }

@app.get("/info")
async def info():
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": settings.ENVIRONMENT,
        "stock_check_mode": settings.STOCK_CHECK_MODE,
        "endpoints": {
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/api/docs",
            "orders": "/orders",
            "customers": "/customers",
            "products": "/products"
        }
    }
