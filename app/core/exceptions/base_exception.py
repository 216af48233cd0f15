# app/core/exceptions/base_exception.py

from typing import Optional

from app.core.response_codes import ResponseCodeEnum


class BaseBusinessException(Exception):
    def __init__(
            self,
            code_enum: Optional[ResponseCodeEnum] = None,
            code: Optional[int] = None,
            status_code: int = 400,
            message: Optional[str] = None,
            extra: Optional[dict] = None,
    ):
        self.code = code if code is not None else code_enum.code
        self.message = message or code_enum.message
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)

    def __str__(self):
        return f"[{self.code}] {self.message}"


class NotFoundException(BaseBusinessException):
    """
    当请求的资源在数据库中不存在时抛出。
    """
    def __init__(self, message: Optional[str] = None, code_enum: ResponseCodeEnum = ResponseCodeEnum.NOT_FOUND):
        super().__init__(code_enum, status_code=404, message=message)


class ServerSideException(BaseBusinessException):
    """
    存储层 (数据库 / 对象存储) 故障。对客户端只暴露通用信息，细节写入服务端日志。
    """
    def __init__(self, code_enum: ResponseCodeEnum, message: Optional[str] = None, extra: Optional[dict] = None):
        super().__init__(code_enum, status_code=500, message=message, extra=extra)
