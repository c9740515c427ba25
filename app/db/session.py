from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, future=True)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session

async def init_db(bind=engine):
    # Import models so every table is registered on the metadata
    from app.db import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

@asynccontextmanager
async def atomic(session: AsyncSession):
    """
    Run a unit of work as one transaction.

    Commits when the block exits normally, rolls back on any exception and re-raises it.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
