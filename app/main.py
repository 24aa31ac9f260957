# app/main.py
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config.settings import settings
from app.config.database import engine
from app.core.middleware import setup_middleware, setup_exception_handlers
from app.api.v1.router import api_router
from app.shared.database.models import Base
from app.shared.enums import DeliveryStatus

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 %s starting...", settings.app_name)
    logger.info("📍 Version: %s", settings.version)
    logger.info("🌍 Environment: %s", "Development" if settings.debug else "Production")
    logger.info("🗄️  Database: %s", settings.database_url.split("@")[1] if "@" in settings.database_url else settings.database_url)

    if settings.create_tables_on_startup:
        Base.metadata.create_all(bind=engine)

    yield

    # Shutdown
    logger.info("🛑 %s shutting down...", settings.app_name)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Gestión de entregas con drones: creación, asignación, seguimiento y confirmación",
    docs_url="/docs",
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# Setup middleware
setup_middleware(app)
setup_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api/v1")

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": f"🚀 {settings.app_name}",
        "version": settings.version,
        "status": "running",
        "environment": "production" if not settings.debug else "development",
        "docs": "/docs",
        "api": "/api/v1",
        "delivery_api": "/api/v1/delivery",
        "delivery_statuses": [s.value for s in DeliveryStatus if s != DeliveryStatus.DELIVERY_STATUS_ERROR],
        "confirmation_requires_completion": settings.require_completed_for_confirmation
    }

@app.get("/health")
async def health_check():
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error("Health check: database unavailable: %s", e)
        database = "unavailable"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "version": settings.version,
        "app": settings.app_name,
        "environment": "production" if not settings.debug else "development"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
