import re
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from itdesk.core.config import settings

logger = logging.getLogger(__name__)


def get_async_driver(uri: str) -> str:
    if uri.startswith("postgresql"):
        return re.sub(r"postgresql(\+psycopg2)?://", "postgresql+asyncpg://", uri)
    if uri.startswith("mysql"):
        return re.sub(r"mysql(\+pymysql)?://", "mysql+aiomysql://", uri)
    return uri


if settings.DATABASE_URI:
    async_db_uri = get_async_driver(settings.DATABASE_URI)

    engine = create_async_engine(
        async_db_uri,
        pool_pre_ping=True,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        echo=False,
    )

    AsyncSessionLocal = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
else:
    logger.warning("DATABASE_URI is not configured. Database access is unavailable.")
    engine = None
    AsyncSessionLocal = None


async def get_db() -> AsyncSession:
    if AsyncSessionLocal is None:
        raise ValueError("No database connection configured")

    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
