from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from app.config.settings import settings
from app.core.api_response import response_error, response_success
from app.core.logger import logger
from app.core.response_codes import ResponseCodeEnum
from app.db.session import ping

router = APIRouter()


@router.get("/", summary="服务信息")
async def root():
    return response_success(data={
        "service": "file-manager",
        "env": settings.server.env,
        "endpoints": ["/login", "/logout", "/upload", "/files", "/delete/{id}", "/download-multiple"],
    })


@router.get("/health", summary="健康检查")
async def health():
    try:
        await ping()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Health check: database unreachable: {e}")
        return response_error(
            code=ResponseCodeEnum.SERVICE_UNAVAILABLE,
            http_status=503,
        )
    return response_success(data={"status": "ok", "database": "connected"})
