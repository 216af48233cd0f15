from typing import Any, Optional, Dict, TypeVar, Generic

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from app.core.logger import logger
from app.core.response_codes import ResponseCodeEnum

T = TypeVar('T')


# === Generic Pydantic Response Schema ===
class StandardResponse(BaseModel, Generic[T]):
    code: int
    message: str
    data: Optional[T] = None

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        json_schema_extra={
            "example": {
                "code": 0,
                "message": "Success",
                "data": {}
            }
        },
    )


# === 自动序列化工具 ===
def to_json_compatible(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump()

    if isinstance(data, list):
        return [to_json_compatible(item) for item in data]

    if isinstance(data, dict):
        return {k: to_json_compatible(v) for k, v in data.items()}

    return data  # int, str, bool, None, etc.


# === 成功响应 ===
def response_success(
    data: Any = None,
    code: ResponseCodeEnum = ResponseCodeEnum.SUCCESS,
    http_status: int = 200,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    final_message = message or code.message
    logger.debug(f"Response Success | code: {code.code}, message: {final_message}")

    # 先自定义序列化 (Pydantic)，再交给 FastAPI 处理 datetime 等类型
    encoded_data = jsonable_encoder(to_json_compatible(data))

    return JSONResponse(
        status_code=http_status,
        content={
            "code": code.code,
            "message": final_message,
            "data": encoded_data
        },
        headers=headers
    )


# === 错误响应 ===
def response_error(
    code: ResponseCodeEnum = ResponseCodeEnum.SERVER_ERROR,
    http_status: int = 500,
    message: Optional[str] = None,
    business_code: Optional[int] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    final_message = message or code.message
    final_code = business_code if business_code is not None else code.code
    logger.warning(f"Response Error | http_status: {http_status}, code: {final_code}, message: {final_message}")

    return JSONResponse(
        status_code=http_status,
        content={
            "code": final_code,
            "message": final_message,
            "data": None
        },
        headers=headers
    )
