# app/api/dependencies/services.py
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.db.session import get_session
from app.infra.storage.object_fetcher import ObjectFetcher
from app.infra.storage.storage_factory import StorageFactory
from app.infra.storage.storage_interface import StorageClientInterface
from app.repo.crud.file.file_record_repo import FileRecordRepository
from app.services.auth_service import AuthService
from app.services.file.archive_export_service import ArchiveExportService
from app.services.file.file_record_service import FileRecordService
from app.services.file.file_upload_service import FileUploadService


# === 进程级单例 ===

@lru_cache()
def get_storage_factory() -> StorageFactory:
    return StorageFactory(settings.storage)


def get_storage_client() -> StorageClientInterface:
    """存储客户端在第一次请求时才创建，导入模块不会触发网络访问。"""
    return get_storage_factory().get_client()


_object_fetcher: Optional[ObjectFetcher] = None


def get_object_fetcher() -> ObjectFetcher:
    global _object_fetcher
    if _object_fetcher is None:
        _object_fetcher = ObjectFetcher(timeout=settings.export.fetch_timeout)
    return _object_fetcher


async def close_object_fetcher() -> None:
    global _object_fetcher
    if _object_fetcher is not None:
        await _object_fetcher.aclose()
        _object_fetcher = None


# === 请求级依赖 ===

def get_file_record_repo(session: AsyncSession = Depends(get_session)) -> FileRecordRepository:
    return FileRecordRepository(session)


def get_file_upload_service(
    storage: StorageClientInterface = Depends(get_storage_client),
    repo: FileRecordRepository = Depends(get_file_record_repo),
) -> FileUploadService:
    return FileUploadService(storage=storage, repo=repo)


def get_archive_export_service(
    repo: FileRecordRepository = Depends(get_file_record_repo),
    fetcher: ObjectFetcher = Depends(get_object_fetcher),
) -> ArchiveExportService:
    return ArchiveExportService(repo=repo, fetcher=fetcher)


def get_file_record_service(
    repo: FileRecordRepository = Depends(get_file_record_repo),
    storage: StorageClientInterface = Depends(get_storage_client),
) -> FileRecordService:
    return FileRecordService(repo=repo, storage=storage)


def get_auth_service() -> AuthService:
    return AuthService()
