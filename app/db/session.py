from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.config.settings import settings
import app.models  # noqa: F401  注册所有表模型到 SQLModel.metadata


db_conf = settings.database

# 初始化数据库引擎和 Session (引擎只创建连接池，不会立即连接)
engine = create_async_engine(
    db_conf.url,
    echo=db_conf.echo,
    pool_size=db_conf.pool_size,
    max_overflow=db_conf.max_overflow,
    pool_pre_ping=db_conf.pool_pre_ping,
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    提供一个数据库会话（依赖注入用）。
    Service 层显式 commit；这里只负责异常时回滚以及最终关闭会话。
    """
    session = AsyncSessionLocal()
    try:
        yield session
    except Exception:
        # 如果在处理过程中发生任何异常，则回滚所有更改，再交给上层处理。
        await session.rollback()
        raise
    finally:
        # 无论成功还是失败，最终都要关闭会话，释放连接。
        await session.close()


# 初始化数据库（启动时调用）
async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def ping() -> None:
    """执行 SELECT 1 以确认数据库可达，失败时直接抛出驱动异常。"""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def dispose_engine():
    await engine.dispose()
