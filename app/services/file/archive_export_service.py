from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from app.core.exceptions import (
    ArchiveWriteException,
    MetadataQueryException,
    NoIdsProvidedException,
    ObjectFetchException,
)
from app.infra.storage.object_fetcher import ObjectFetcher
from app.repo.crud.file.file_record_repo import FileRecordRepository
from app.schemas.file.file_record_schemas import ExportEntry
from app.services._base_service import BaseService
from app.utils.zip_stream import ZipStream


class ArchiveExportService(BaseService):
    """
    批量导出：把选中的多个文件即时压缩成一个 zip 流式返回。

    元数据只查询一次；文件逐个拉取、逐个写入归档，内存中同时只保留一个文件。
    单个文件拉取失败时跳过该文件，其余文件照常写入。
    """

    def __init__(self, repo: FileRecordRepository, fetcher: ObjectFetcher):
        super().__init__()
        self.repo = repo
        self.fetcher = fetcher
        self.export_conf = self.settings.export

    @staticmethod
    def parse_ids(raw: Optional[str]) -> List[int]:
        """
        解析逗号分隔的 id 字符串。
        空值、非数字、非正数会被丢弃，重复的 id 只保留第一次出现。
        """
        ids: List[int] = []
        if not raw:
            return ids
        seen = set()
        for token in raw.split(","):
            token = token.strip()
            if not (token.isascii() and token.isdigit()):
                continue
            value = int(token)
            if value > 0 and value not in seen:
                seen.add(value)
                ids.append(value)
        return ids

    async def resolve(self, ids: Sequence[int]) -> List[ExportEntry]:
        if not ids:
            raise NoIdsProvidedException()
        try:
            entries = await self.repo.get_entries_by_ids(ids)
        except SQLAlchemyError as e:
            self.logger.error(f"Export query failed for ids {list(ids)}: {e}")
            raise MetadataQueryException() from e

        missing = len(ids) - len(entries)
        if missing:
            self.logger.info(f"{missing} of {len(ids)} requested ids matched no record.")
        return entries

    async def stream_archive(
            self,
            entries: Sequence[ExportEntry],
            is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[bytes]:
        """
        异步生成 zip 字节。
        响应头此时已经发出，之后的非预期错误只能记录并中断连接。
        """
        zs = ZipStream(compress_level=self.export_conf.compress_level)
        skipped = 0
        try:
            for entry in entries:
                if is_disconnected is not None and await is_disconnected():
                    self.logger.info(f"Client disconnected, archive stopped after {zs.entry_count} entries.")
                    return

                try:
                    data = await self.fetcher.fetch(entry.blob_url)
                except ObjectFetchException as e:
                    skipped += 1
                    self.logger.warning(f"Skipping '{entry.file_name}' in archive: {e.reason}")
                    continue

                # 压缩在线程池中进行，事件循环只负责转发已压缩的字节
                chunks = zs.add_entry(entry.file_name, data, chunk_size=self.export_conf.chunk_size)
                while True:
                    chunk = await run_in_threadpool(next, chunks, None)
                    if chunk is None:
                        break
                    yield chunk

            yield await run_in_threadpool(zs.finish)
        except Exception as e:
            self.logger.exception(f"Archive stream aborted: {e}")
            raise ArchiveWriteException(message=str(e)) from e

        self.logger.info(f"Archive finished: {zs.entry_count} entries written, {skipped} skipped.")

    async def export(
            self,
            raw_ids: Optional[str],
            is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[bytes]:
        """解析并查询（可能抛出 400/500），返回尚未开始的字节流。"""
        entries = await self.resolve(self.parse_ids(raw_ids))
        return self.stream_archive(entries, is_disconnected=is_disconnected)
