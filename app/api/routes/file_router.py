import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import RedirectResponse, StreamingResponse

from app.api.dependencies.services import (
    get_archive_export_service,
    get_file_record_service,
    get_file_upload_service,
)
from app.config.settings import settings
from app.core.api_response import StandardResponse, response_success
from app.schemas.file.file_record_schemas import FileListPage, FileListQuery, UploadPart
from app.services.file.archive_export_service import ArchiveExportService
from app.services.file.file_record_service import FileRecordService
from app.services.file.file_upload_service import FileUploadService


router = APIRouter()


def _files_page_url() -> str:
    return f"{settings.server.api_prefix}/files"


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


@router.post(
    "/upload",
    status_code=303,
    summary="上传一个或多个文件"
)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None, description="多个文件，字段名 files"),
    file: Optional[UploadFile] = File(None, description="单个文件，字段名 file"),
    service: FileUploadService = Depends(get_file_upload_service),
):
    """
    所有文件写入对象存储成功后，一次性写入元数据，然后重定向到文件列表。
    """
    uploads = list(files or [])
    if file is not None:
        uploads.append(file)

    parts = [
        UploadPart(
            original_name=u.filename or "",
            stream=u.file,
            content_type=u.content_type or "application/octet-stream",
            size_bytes=_upload_size(u),
        )
        for u in uploads
    ]
    await service.upload_batch(parts)
    return RedirectResponse(url=_files_page_url(), status_code=303)


@router.get(
    "/files",
    response_model=StandardResponse[FileListPage],
    summary="按白名单字段排序列出文件"
)
async def list_files(
    sort: Optional[str] = Query(None, description="file_name / uploaded_at / size_bytes / extension"),
    order: Optional[str] = Query(None, description="ASC / DESC"),
    service: FileRecordService = Depends(get_file_record_service),
):
    """不合法的 sort / order 会静默回退为 uploaded_at / DESC。"""
    page = await service.list_files(FileListQuery(sort=sort, order=order))
    return response_success(data=page)


@router.post(
    "/delete/{file_id}",
    status_code=303,
    summary="删除单个文件（对象 + 记录）"
)
async def delete_file(
    file_id: int,
    service: FileRecordService = Depends(get_file_record_service),
):
    await service.delete_file(file_id)
    return RedirectResponse(url=_files_page_url(), status_code=303)


@router.get(
    "/download-multiple",
    summary="把多个文件打包成 zip 流式下载"
)
async def download_multiple(
    request: Request,
    ids: Optional[str] = Query(None, description="逗号分隔的文件 id, e.g. 1,2,3"),
    service: ArchiveExportService = Depends(get_archive_export_service),
):
    # 查询在发送响应头之前完成，查询失败仍能返回正常的错误响应
    stream = await service.export(ids, is_disconnected=request.is_disconnected)
    archive_name = service.export_conf.archive_name
    return StreamingResponse(
        stream,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{archive_name}"'},
    )
