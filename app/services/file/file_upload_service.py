import asyncio
from typing import Dict, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from app.core.exceptions import (
    MetadataPersistException,
    NoFilesProvidedException,
    ObjectStoreWriteException,
)
from app.infra.storage.storage_interface import StorageClientInterface
from app.repo.crud.file.file_record_repo import FileRecordRepository
from app.schemas.file.file_record_schemas import BatchUploadResult, FileRecordCreate, UploadPart
from app.services._base_service import BaseService
from app.utils.filename_utils import build_object_key, derive_extension, repair_filename


class FileUploadService(BaseService):
    """
    多文件上传流水线。

    每个文件依次（或在并发上限内）写入对象存储，全部成功后才用一条
    批量 INSERT 写入元数据。任何一个文件失败都会放弃整个批次的元数据，
    已写入的对象不会回收，只在日志中列出以便人工清理。
    """

    def __init__(self, storage: StorageClientInterface, repo: FileRecordRepository):
        super().__init__()
        self.storage = storage
        self.repo = repo
        self.upload_folder = self.settings.storage.upload_folder
        self.concurrency_limit = self.settings.storage.upload_concurrency

    @retry(
        retry=retry_if_exception_type((ClientError, BotoCoreError)),
        wait=wait_fixed(1),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _safe_upload(self, part: UploadPart, object_key: str) -> Dict:
        """内部核心上传方法，只对 boto 的瞬时错误重试。"""
        client_name = self.storage.__class__.__name__
        self.logger.info(f"Uploading {object_key} using client: {client_name}")
        # 重试时需要从头读取
        part.stream.seek(0)
        return await run_in_threadpool(
            self.storage.put_object,
            object_name=object_key,
            data=part.stream,
            length=part.size_bytes,
            content_type=part.content_type or "application/octet-stream",
        )

    async def _upload_one(self, part: UploadPart, written: List[str]) -> FileRecordCreate:
        file_name = repair_filename(part.original_name)
        object_key = build_object_key(self.upload_folder, file_name)
        try:
            await self._safe_upload(part, object_key)
        except Exception as e:
            self.logger.exception(f"Upload failed for {object_key}: {e}")
            raise ObjectStoreWriteException(object_key=object_key, orphaned_keys=list(written)) from e

        written.append(object_key)
        return FileRecordCreate(
            file_name=file_name,
            extension=derive_extension(file_name),
            blob_url=self.storage.build_final_url(object_key),
            size_bytes=part.size_bytes,
            object_key=object_key,
        )

    async def _upload_all(self, parts: Sequence[UploadPart], written: List[str]) -> List[FileRecordCreate]:
        semaphore = asyncio.Semaphore(self.concurrency_limit)
        abort = asyncio.Event()

        async def _guarded(part: UploadPart) -> Optional[FileRecordCreate]:
            async with semaphore:
                if abort.is_set():
                    return None
                try:
                    return await self._upload_one(part, written)
                except ObjectStoreWriteException:
                    abort.set()
                    raise

        results = await asyncio.gather(*(_guarded(p) for p in parts), return_exceptions=True)

        # 按输入顺序抛出第一个失败
        for result in results:
            if isinstance(result, BaseException):
                if isinstance(result, ObjectStoreWriteException):
                    result.orphaned_keys = list(written)
                    result.extra["orphaned_keys"] = result.orphaned_keys
                raise result
        return list(results)

    async def upload_batch(self, parts: Sequence[UploadPart]) -> BatchUploadResult:
        parts = [p for p in parts if p.original_name]
        if not parts:
            raise NoFilesProvidedException()

        written: List[str] = []
        try:
            rows = await self._upload_all(parts, written)
        except ObjectStoreWriteException as e:
            if e.orphaned_keys:
                self.logger.error(f"Batch aborted, orphaned objects left in storage: {e.orphaned_keys}")
            raise

        try:
            await self.repo.bulk_insert(rows)
            await self.repo.commit()
        except SQLAlchemyError as e:
            await self.repo.rollback()
            self.logger.error(f"Metadata insert failed for {len(rows)} files, orphaned objects: {written}: {e}")
            raise MetadataPersistException(orphaned_keys=written) from e

        self.logger.info(f"Uploaded {len(rows)} files in one batch.")
        return BatchUploadResult(count=len(rows), items=rows)
