"""
Backend for a company Fantasy Premier League competition.

Serves registrations, admin review and weekly/monthly leaderboards built
from the public FPL API.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.router import include_routers
from app.core.config import settings
from app.core.exception_handlers import register_exception_handlers
from app.core.startup import initialize_database, shutdown_database

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {app.title}")
    initialize_database()
    yield
    logger.info(f"Stopping {app.title}")
    shutdown_database()


app = FastAPI(
    title="FPL Company Challenge",
    description="Registrations, admin review and weekly/monthly leaderboards for a company FPL league.",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)
include_routers(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
