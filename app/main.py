from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.middleware.cors import CORSMiddleware

from app.api.dependencies.services import close_object_fetcher
from app.api.router import api_router
from app.config.settings import settings
from app.core.api_response import response_error
from app.core.exceptions import BaseBusinessException
from app.core.logger import logger, setup_logging
from app.core.response_codes import ResponseCodeEnum
from app.db.session import create_db_and_tables, dispose_engine, ping

setup_logging(settings.logging)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 应用启动中，正在初始化资源...")

    # 先确认数据库可达，再建表
    await ping()
    logger.info("Database connection established.")
    await create_db_and_tables()
    logger.info("✅ 所有资源初始化完成")

    yield

    # 应用关闭，释放资源
    await close_object_fetcher()
    await dispose_engine()
    logger.info("🛑 应用已关闭，数据库连接池已释放")


app = FastAPI(title="File Manager", lifespan=lifespan)


@app.exception_handler(BaseBusinessException)
async def business_exception_handler(request: Request, exc: BaseBusinessException):
    logger.warning(
        f"Business Exception | code: {exc.code}, message: {exc.message}, "
        f"path: {request.url.path}, extra: {exc.extra}"
    )
    return response_error(http_status=exc.status_code, message=exc.message, business_code=exc.code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation Error | {exc.errors()} | path: {request.url.path}")
    return response_error(code=ResponseCodeEnum.VALIDATION_ERROR, http_status=400)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled Exception | {repr(exc)} | path: {request.url.path}")
    return response_error(code=ResponseCodeEnum.SERVER_ERROR, http_status=500)


origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix=settings.server.api_prefix)
