from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from livequiz.core.config import settings
from livequiz import models  # noqa: F401


engine: AsyncEngine = create_async_engine(settings.assembled_db_url, echo=False, future=True)


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def get_session(bind: Optional[AsyncEngine] = None):
    async_session = AsyncSession(bind or engine, expire_on_commit=False)
    try:
        yield async_session
    finally:
        await async_session.close()
