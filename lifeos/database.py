import logging
from typing import Any, Dict, Optional, cast

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from lifeos.config import get_settings

load_dotenv()
logger = logging.getLogger("database")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_CURRENT_DB_URL: Optional[str] = None


def _detect_driver(url: str) -> str:
    try:
        return make_url(url).drivername
    except Exception:
        return url.split(":", 1)[0]


# ---------------------------------------------------------------------------
# Engine Setup
# ---------------------------------------------------------------------------

def _make_engine(url: Optional[str] = None) -> AsyncEngine:
    url = (url or str(get_settings().database_url or "")).strip()
    if not url:
        raise RuntimeError("DATABASE_URL is required")

    driver = _detect_driver(url)
    engine_kwargs: Dict[str, Any] = {
        "echo": False,
        "future": True,
    }
    if driver.startswith("sqlite"):
        # aiosqlite connections are cheap; pooling them across event loops is not
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 10
        engine_kwargs["max_overflow"] = 5

    global _CURRENT_DB_URL
    _CURRENT_DB_URL = url

    return create_async_engine(url, **engine_kwargs)


async_engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------

def get_database_dsn(hide_password: bool = True) -> str:
    """Return the configured DB DSN string."""
    url_str = _CURRENT_DB_URL or ""
    try:
        url = make_url(cast(str, url_str))
        return url.render_as_string(hide_password=hide_password)
    except Exception:
        return url_str


def get_sessionmaker() -> async_sessionmaker:
    if AsyncSessionLocal is None:
        raise RuntimeError("Database not initialized; call init_db_async() first")
    return AsyncSessionLocal


async def init_db_async(url: Optional[str] = None):
    """Bind the engine and create tables. Rebinding disposes the previous engine."""
    from lifeos.models import models

    global async_engine, AsyncSessionLocal
    try:
        if async_engine is not None:
            await async_engine.dispose()
        async_engine = _make_engine(url)
        AsyncSessionLocal = async_sessionmaker(bind=async_engine, expire_on_commit=False)

        async with async_engine.begin() as conn:
            await conn.run_sync(models.Base.metadata.create_all)
        logger.info("Database initialized successfully.")
    except Exception as e:
        logger.critical("Database initialization failed: %s", e)
        raise RuntimeError("Failed to initialize database") from e


async def shutdown_db_async():
    """Dispose the async engine cleanly."""
    global async_engine, AsyncSessionLocal
    if async_engine is None:
        return
    try:
        await async_engine.dispose()
        logger.info("Database connection pool closed.")
    except Exception as e:
        logger.error("Error shutting down database engine: %s", e)
        raise
    finally:
        async_engine = None
        AsyncSessionLocal = None
