from enum import Enum


class ResponseCodeEnum(Enum):

    # === 通用响应码 ===
    SUCCESS = (0, "Success")
    VALIDATION_ERROR = (40001, "Invalid request parameters")
    AUTH_ERROR = (40100, "Authentication failed")
    NOT_FOUND = (40400, "Resource not found")
    SERVER_ERROR = (50000, "Internal server error")
    SERVICE_UNAVAILABLE = (50300, "Service unavailable")

    # === 登录 ===
    INVALID_PASSPHRASE = (40101, "Please check the access password.")

    # === 上传 ===
    NO_FILES_PROVIDED = (40020, "No files to upload.")
    OBJECT_STORE_WRITE_FAILED = (50020, "A server error occurred while uploading files.")
    METADATA_PERSIST_FAILED = (50021, "A server error occurred while saving file information.")

    # === 列表 / 导出 ===
    NO_IDS_PROVIDED = (40030, "No files selected for download.")
    METADATA_QUERY_FAILED = (50030, "A server error occurred while loading the file list.")
    OBJECT_FETCH_FAILED = (50031, "Failed to fetch a stored file.")
    ARCHIVE_WRITE_FAILED = (50032, "Failed to build the archive.")

    # === 删除 ===
    RECORD_NOT_FOUND = (40440, "The file to delete could not be found.")
    OBJECT_STORE_DELETE_FAILED = (50040, "A server error occurred while deleting the file.")

    def __init__(self, code: int, message: str):
        self._code = code
        self._message = message

    @property
    def code(self):
        return self._code

    @property
    def message(self):
        return self._message
