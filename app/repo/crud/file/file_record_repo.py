from typing import List, Sequence

from sqlalchemy import asc, desc, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Insert, Select

from app.enums.query_enums import FileSortField, SortOrder
from app.models.files.file_record import FileRecord
from app.repo.crud.common.base_repo import BaseRepository
from app.schemas.file.file_record_schemas import ExportEntry, FileRecordCreate


class FileRecordRepository(BaseRepository[FileRecord]):
    """
    FileRecordRepository 提供了所有与文件记录数据库操作相关的方法。
    它继承了 BaseRepository 的通用功能，并添加了批量插入、排序列表和导出查询。
    """

    # 排序字段白名单 -> 映射列；ORDER BY 只会出现这里的列
    SORT_COLUMNS = {
        FileSortField.FILE_NAME: FileRecord.file_name,
        FileSortField.UPLOADED_AT: FileRecord.uploaded_at,
        FileSortField.SIZE_BYTES: FileRecord.size_bytes,
        FileSortField.EXTENSION: FileRecord.extension,
    }

    def __init__(self, db: AsyncSession):
        super().__init__(db, FileRecord)

    # ==========================
    # 语句构建 (便于单独校验 SQL 形态)
    # ==========================

    @staticmethod
    def build_bulk_insert(rows: Sequence[FileRecordCreate]) -> Insert:
        """
        构建一条多行 INSERT ... VALUES (...), (...)。
        所有值都是绑定参数，每行 5 个，按行连续排列。
        """
        return insert(FileRecord).values([row.model_dump() for row in rows])

    @classmethod
    def build_list_sorted(cls, field: FileSortField, order: SortOrder) -> Select:
        column = cls.SORT_COLUMNS[FileSortField(field)]
        direction = asc if order == SortOrder.ASC else desc
        # id 作为稳定的次级排序
        return select(FileRecord).order_by(direction(column), direction(FileRecord.id))

    @staticmethod
    def build_entries_by_ids(ids: Sequence[int]) -> Select:
        return (
            select(FileRecord.file_name, FileRecord.blob_url)
            .where(FileRecord.id.in_(list(ids)))
            .order_by(FileRecord.id)
        )

    # ==========================
    # 数据操作
    # ==========================

    async def bulk_insert(self, rows: Sequence[FileRecordCreate]) -> int:
        """一次往返写入整个批次，不提交事务。"""
        if not rows:
            return 0
        await self.db.execute(self.build_bulk_insert(rows))
        return len(rows)

    async def list_sorted(self, field: FileSortField, order: SortOrder) -> List[FileRecord]:
        return await self._run_and_scalars(self.build_list_sorted(field, order))

    async def get_entries_by_ids(self, ids: Sequence[int]) -> List[ExportEntry]:
        """按 id 升序返回 (file_name, blob_url)，不存在的 id 直接忽略。"""
        if not ids:
            return []
        result = await self.db.execute(self.build_entries_by_ids(ids))
        return [ExportEntry(file_name=row.file_name, blob_url=row.blob_url) for row in result.all()]
