from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from app.core.exceptions import (
    MetadataPersistException,
    MetadataQueryException,
    ObjectStoreDeleteException,
    RecordNotFoundException,
)
from app.infra.storage.storage_interface import StorageClientInterface
from app.repo.crud.file.file_record_repo import FileRecordRepository
from app.schemas.file.file_record_schemas import FileListPage, FileListQuery, FileRecordRead
from app.services._base_service import BaseService


class FileRecordService(BaseService):
    """
    文件记录业务服务层。
    负责文件列表（排序白名单）以及删除（先删对象，再删记录）。
    """

    def __init__(self, repo: FileRecordRepository, storage: StorageClientInterface):
        super().__init__()
        self.repo = repo
        self.storage = storage

    async def list_files(self, query: FileListQuery) -> FileListPage:
        try:
            records = await self.repo.list_sorted(query.sort, query.order)
        except SQLAlchemyError as e:
            self.logger.error(f"Listing query failed: {e}")
            raise MetadataQueryException() from e

        items = [FileRecordRead.model_validate(r) for r in records]
        return FileListPage(items=items, sort=query.sort, order=query.order, total=len(items))

    async def delete_file(self, record_id: int) -> None:
        """
        删除一个文件。
        对象删除失败时保留记录，以便稍后重试；对象已不存在视为删除成功。
        """
        try:
            record = await self.repo.get_by_id(record_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Lookup of file {record_id} failed: {e}")
            raise MetadataQueryException() from e

        if record is None:
            raise RecordNotFoundException(message=f"File {record_id} not found")

        try:
            await run_in_threadpool(self.storage.remove_object, record.object_key)
        except Exception as e:
            self.logger.exception(f"Failed to delete object {record.object_key}: {e}")
            raise ObjectStoreDeleteException(object_key=record.object_key) from e

        try:
            await self.repo.delete(record)
            await self.repo.commit()
        except SQLAlchemyError as e:
            await self.repo.rollback()
            self.logger.error(f"Object {record.object_key} deleted but row {record_id} was kept: {e}")
            raise MetadataPersistException() from e

        self.logger.info(f"Deleted file {record_id} ({record.object_key}).")
