"""One-time database initialization script.

Creates the documents, chunks, chat_sessions and messages tables.
Run via: python scripts/init_db.py (with PREPCOACH_DATABASE_URL set)
"""

import asyncio

from sqlalchemy.ext.asyncio import create_async_engine

from prepcoach.core.config import settings
from prepcoach.models.orm import Base


async def init() -> None:
    engine = create_async_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database tables created successfully.")


if __name__ == "__main__":
    asyncio.run(init())
