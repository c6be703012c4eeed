from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from probid.core.config import Settings

# 建立 ORM Model 基底類別
Base = declarative_base()


class Database:
    """
    資料庫連線的持有者：每個 process 由 create_app 建立一次，
    再透過 app.state 傳給每個請求，不使用全域 engine。
    """

    def __init__(self, settings: Settings):
        engine_kwargs = {"echo": settings.DATABASE_ECHO}
        if settings.DATABASE_URL.startswith("sqlite"):
            # SQLite 連線不可跨 event loop 共用
            engine_kwargs["poolclass"] = NullPool
        else:
            # 每次從連線池取連線前，先 PING 一次，確保連線有效
            engine_kwargs["pool_pre_ping"] = True

        self.engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """建立所有資料表 (僅建立不存在的表)"""
        # 確保所有 Model 都已在 Base.metadata 註冊
        from probid.models import bid, file, project, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI Dependency: 取得非同步資料庫 session"""
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
