from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    def __init__(self, db: AsyncSession, model: Type[ModelType]):
        self.db = db
        self.model = model

    # ==========================
    # 事务控制方法 (Transaction Control)
    # ==========================

    async def commit(self):
        """提交当前数据库会话中的所有更改。"""
        await self.db.commit()

    async def rollback(self):
        """回滚当前数据库会话中的所有更改。"""
        await self.db.rollback()

    # ==========================
    # 数据查询方法 (Read)
    # ==========================

    async def _run_and_scalars(self, stmt: Executable) -> List[ModelType]:
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, item_id: Any) -> Optional[ModelType]:
        """根据主键获取单个对象，不存在时返回 None。"""
        return await self.db.get(self.model, item_id)

    # ==========================
    # 数据删除方法 (Delete)
    # ==========================

    async def delete(self, db_obj: ModelType) -> None:
        """
        从数据库中物理删除一个对象。
        """
        await self.db.delete(db_obj)
        await self.db.flush()
