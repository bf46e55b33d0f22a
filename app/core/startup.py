"""
Startup and shutdown hooks: table creation and connection disposal.
"""
import logging
from sqlalchemy import text

from app.core.config import settings
from app.core.database import engine, init_db

logger = logging.getLogger(__name__)


def initialize_database() -> None:
    """Create the users table and make sure the database answers."""
    try:
        init_db()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database unavailable at startup: {e}")
        raise

    logger.info(f"Database ready ({engine.url.get_backend_name()})")
    logger.info(f"Running with {settings.summary()}")


def shutdown_database() -> None:
    try:
        engine.dispose()
    except Exception as e:
        # Shutdown continues regardless
        logger.error(f"Error disposing database engine: {e}")
    else:
        logger.info("Database engine disposed")
