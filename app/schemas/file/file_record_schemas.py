from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.enums.query_enums import FileSortField, SortOrder


class FileRecordCreate(BaseModel):
    """批量插入时的一行数据。"""
    file_name: str
    extension: str
    blob_url: str
    size_bytes: int
    object_key: str


class FileRecordRead(BaseModel):
    """
    用于从 API 返回文件记录信息的模型。
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_name: str = Field(..., description="文件的原始名称")
    extension: str = Field(..., description="小写的文件后缀")
    blob_url: str = Field(..., description="文件的公开访问地址")
    size_bytes: int = Field(..., description="文件大小（字节）")
    uploaded_at: Optional[datetime] = None


class FileListQuery(BaseModel):
    """
    列表查询的排序参数。
    不合法的值不会报错，而是静默回退为默认值 (uploaded_at / DESC)。
    """
    sort: FileSortField = FileSortField.UPLOADED_AT
    order: SortOrder = SortOrder.DESC

    @field_validator("sort", mode="before")
    @classmethod
    def _fallback_sort(cls, v: Any) -> FileSortField:
        try:
            return FileSortField(v)
        except ValueError:
            return FileSortField.UPLOADED_AT

    @field_validator("order", mode="before")
    @classmethod
    def _fallback_order(cls, v: Any) -> SortOrder:
        if isinstance(v, str) and v.strip().upper() in SortOrder.__members__:
            return SortOrder[v.strip().upper()]
        return SortOrder.DESC


class FileListPage(BaseModel):
    items: List[FileRecordRead]
    sort: FileSortField
    order: SortOrder
    total: int


class ExportEntry(BaseModel):
    """归档中的一个条目：文件名 + 拉取地址。"""
    file_name: str
    blob_url: str


class BatchUploadResult(BaseModel):
    count: int
    items: List[FileRecordCreate]


class UploadPart(BaseModel):
    """一次上传中的单个文件部分。"""
    original_name: str
    stream: Any = Field(..., description="可读的二进制文件对象")
    content_type: str = "application/octet-stream"
    size_bytes: int
