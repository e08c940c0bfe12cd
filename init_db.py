import asyncio

from itdesk.database.base_class import Base
from itdesk.database.session import engine
import itdesk.models  # noqa: F401  registers every table on Base.metadata


async def init_db():
    if engine is None:
        raise SystemExit("DATABASE_URI is not configured")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
