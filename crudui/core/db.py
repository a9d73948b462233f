# crudui/core/db.py
import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from crudui.core.config import Settings, get_settings
from crudui.core.exceptions import ConfigurationError
from crudui.models.config import DatabaseConfig

logger = logging.getLogger(__name__)


def _engine_options(backend: str, driver: str, settings: Settings) -> Dict[str, Any]:
    """Engine keyword arguments for the given backend"""
    options: Dict[str, Any] = {"echo": settings.DB_ECHO}

    if backend == "sqlite":
        options["connect_args"] = {"check_same_thread": False}  # Needed for SQLite
        return options

    # A single pooled connection serialises every request on the same socket
    options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600
    )
    if driver == "asyncpg":
        options["connect_args"] = {"timeout": settings.DB_CONNECT_TIMEOUT}
    elif driver in ("aiomysql", "asyncmy"):
        options["connect_args"] = {"connect_timeout": settings.DB_CONNECT_TIMEOUT}
    return options


async def create_db_engine(db_config: DatabaseConfig,
                           settings: Optional[Settings] = None) -> AsyncEngine:
    """Create the async engine and prove the connection works with a trivial query"""
    settings = settings or get_settings()

    if not db_config.is_complete:
        raise ConfigurationError("Database configuration required")

    url = db_config.sqlalchemy_url()
    logger.info(f"Connecting to {db_config.safe_target()}...")
    start_time = time.time()

    engine = create_async_engine(
        url,
        **_engine_options(url.get_backend_name(), url.get_driver_name(), settings)
    )

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        await engine.dispose()
        raise

    elapsed = time.time() - start_time
    logger.info(f"Connected to {url.get_backend_name()} database in {elapsed:.2f}s")
    return engine

