import asyncio
import os
import sys
from logging.config import fileConfig

from alembic import context  # type: ignore[attr-defined]
from dotenv import load_dotenv
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

load_dotenv()

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# 'lifeos' must be importable when run through the alembic CLI
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from lifeos.config import get_settings  # noqa: E402
from lifeos.models.models import Base  # noqa: E402

target_metadata = Base.metadata


def _migration_url() -> str:
    """DATABASE_URL (through the app settings) wins over alembic.ini."""
    url = os.getenv("DATABASE_URL") and get_settings().database_url
    url = url or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("DATABASE_URL must be set in environment for Alembic")
    if url.startswith("sqlite://"):
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


DB_URL = _migration_url()
config.set_main_option("sqlalchemy.url", DB_URL)


def _configure(**kwargs) -> None:
    # batch mode: SQLite cannot ALTER most columns in place
    context.configure(target_metadata=target_metadata, compare_type=True, render_as_batch=True, **kwargs)


def run_migrations_offline() -> None:
    """Emit the migration SQL to the script output instead of executing it."""
    _configure(url=DB_URL, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    engine = create_async_engine(DB_URL, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
