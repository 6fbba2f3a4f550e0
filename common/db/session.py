"""Engine and session factories for the ledger database."""

from uuid import uuid4

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)


def _engine_options() -> dict:
    options = {
        "echo": settings.debug,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        # Unique statement names keep asyncpg working behind pgbouncer
        "connect_args": {
            "prepared_statement_name_func": lambda: f"__asyncpg_{uuid4()}__",
        },
    }
    if settings.db_use_nullpool:
        options["poolclass"] = pool.NullPool
        logger.info("Ledger engine without connection pooling")
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_pool_overflow
        logger.info(
            "Ledger engine with connection pooling",
            extra={
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_pool_overflow,
            },
        )
    return options


engine = create_async_engine(settings.async_database_url, **_engine_options())

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Summaries read through this factory; bind it to a replica engine when one exists
AsyncSessionLocalReadonly = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)
