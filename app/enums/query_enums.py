from enum import Enum


class FileSortField(str, Enum):
    """
    文件列表允许排序的字段（白名单）。
    继承自 str 和 Enum，可以让成员在 API 中作为字符串值直接使用。
    """
    FILE_NAME = 'file_name'
    UPLOADED_AT = 'uploaded_at'
    SIZE_BYTES = 'size_bytes'
    EXTENSION = 'extension'


class SortOrder(str, Enum):
    ASC = 'ASC'
    DESC = 'DESC'
