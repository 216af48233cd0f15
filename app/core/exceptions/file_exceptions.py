from typing import List, Optional

from app.core.exceptions.base_exception import (
    BaseBusinessException,
    NotFoundException,
    ServerSideException,
)
from app.core.response_codes import ResponseCodeEnum


# === 请求校验 ===
class NoFilesProvidedException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.NO_FILES_PROVIDED, status_code=400, message=message)


class NoIdsProvidedException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.NO_IDS_PROVIDED, status_code=400, message=message)


class RecordNotFoundException(NotFoundException):
    def __init__(self, message: str = None):
        super().__init__(message=message, code_enum=ResponseCodeEnum.RECORD_NOT_FOUND)


# === 对象存储 ===
class ObjectStoreWriteException(ServerSideException):
    """
    批次中某个文件写入对象存储失败。整个批次的元数据都不会写入；
    已写入的对象不会被回收，其 key 记录在 orphaned_keys 中。
    """
    def __init__(self, object_key: str, orphaned_keys: Optional[List[str]] = None):
        self.object_key = object_key
        self.orphaned_keys = list(orphaned_keys or [])
        super().__init__(
            ResponseCodeEnum.OBJECT_STORE_WRITE_FAILED,
            extra={"object_key": object_key, "orphaned_keys": self.orphaned_keys},
        )


class ObjectStoreDeleteException(ServerSideException):
    def __init__(self, object_key: str):
        self.object_key = object_key
        super().__init__(ResponseCodeEnum.OBJECT_STORE_DELETE_FAILED, extra={"object_key": object_key})


class ObjectFetchException(ServerSideException):
    """单个对象拉取失败。导出时逐文件跳过，不会中断整个归档。"""
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(
            ResponseCodeEnum.OBJECT_FETCH_FAILED,
            message=f"Failed to fetch {url}: {reason}",
            extra={"url": url},
        )


# === 元数据存储 ===
class MetadataPersistException(ServerSideException):
    def __init__(self, orphaned_keys: Optional[List[str]] = None):
        self.orphaned_keys = list(orphaned_keys or [])
        super().__init__(ResponseCodeEnum.METADATA_PERSIST_FAILED, extra={"orphaned_keys": self.orphaned_keys})


class MetadataQueryException(ServerSideException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.METADATA_QUERY_FAILED, message=message)


# === 归档 ===
class ArchiveWriteException(ServerSideException):
    """响应头已发送后的归档失败，只能中断连接，无法再返回错误响应。"""
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.ARCHIVE_WRITE_FAILED, message=message)
