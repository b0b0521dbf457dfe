import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from link4coders.api import api_router
from link4coders.config import settings
from link4coders.database import dispose_db, init_db
from link4coders.logging_config import setup_logging
from link4coders.services.pipeline import shutdown_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)
    await init_db()
    logger.info("Starting %s in %s mode", settings.app_name, settings.environment)
    yield
    # Shutdown
    await shutdown_pipeline()
    await dispose_db()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(api_router)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok", "app": settings.app_name}
