import asyncio
import io
import os
import threading
import time
import zipfile

import pytest

from app.core.exceptions import ArchiveWriteException, NoIdsProvidedException, ObjectFetchException
from app.schemas.file.file_record_schemas import ExportEntry
from app.services.file.archive_export_service import ArchiveExportService
from app.utils.zip_stream import _StreamSink


class StubFetcher:
    def __init__(self, payloads, error=None):
        self.payloads = payloads
        self.error = error
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.payloads:
            raise ObjectFetchException(url=url, reason="HTTP 404")
        return self.payloads[url]


def _entries(n):
    return [ExportEntry(file_name=f"f{i}.txt", blob_url=f"http://s/{i}") for i in range(n)]


async def _collect(stream):
    return [chunk async for chunk in stream]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,2,3", [1, 2, 3]),
        (" 3 , 1 ,3,2,1", [3, 1, 2]),
        ("1,,abc,-4,0,2.5,7", [1, 7]),
        ("", []),
        (None, []),
        ("²", []),
    ],
)
def test_parse_ids(raw, expected):
    assert ArchiveExportService.parse_ids(raw) == expected


def test_resolve_without_ids(repo):
    service = ArchiveExportService(repo=repo, fetcher=StubFetcher({}))
    with pytest.raises(NoIdsProvidedException):
        asyncio.run(service.resolve([]))
    assert repo.query_calls == 0


def test_stream_archive(repo):
    payloads = {f"http://s/{i}": f"data {i}".encode() for i in range(3)}
    service = ArchiveExportService(repo=repo, fetcher=StubFetcher(payloads))

    chunks = asyncio.run(_collect(service.stream_archive(_entries(3))))

    with zipfile.ZipFile(io.BytesIO(b"".join(chunks))) as zf:
        assert zf.namelist() == ["f0.txt", "f1.txt", "f2.txt"]


# 测试客户端断开后不再拉取后续文件
def test_stream_stops_on_disconnect(repo):
    fetcher = StubFetcher({f"http://s/{i}": b"x" for i in range(3)})
    service = ArchiveExportService(repo=repo, fetcher=fetcher)
    checks = iter([False, True, True])

    async def is_disconnected():
        return next(checks)

    asyncio.run(_collect(service.stream_archive(_entries(3), is_disconnected=is_disconnected)))

    assert fetcher.calls == ["http://s/0"]


# 测试响应开始后出现的非预期错误会被转换为 ArchiveWriteException 抛出
def test_unexpected_error_aborts_stream(repo):
    service = ArchiveExportService(repo=repo, fetcher=StubFetcher({}, error=RuntimeError("socket closed")))

    with pytest.raises(ArchiveWriteException):
        asyncio.run(_collect(service.stream_archive(_entries(2))))


# 测试压缩与中央目录的写入都不在事件循环线程上执行
def test_compression_runs_off_event_loop(repo, monkeypatch):
    writer_threads = set()
    original_write = _StreamSink.write

    def recording_write(self, b):
        writer_threads.add(threading.get_ident())
        return original_write(self, b)

    monkeypatch.setattr(_StreamSink, "write", recording_write)
    payloads = {f"http://s/{i}": os.urandom(256 * 1024) for i in range(2)}
    service = ArchiveExportService(repo=repo, fetcher=StubFetcher(payloads))

    async def run():
        loop_thread = threading.get_ident()
        chunks = await _collect(service.stream_archive(_entries(2)))
        return loop_thread, chunks

    loop_thread, chunks = asyncio.run(run())

    assert writer_threads
    assert loop_thread not in writer_threads
    with zipfile.ZipFile(io.BytesIO(b"".join(chunks))) as zf:
        assert zf.read("f1.txt") == payloads["http://s/1"]


# 测试压缩大文件期间事件循环仍能及时调度其他任务
def test_large_entry_does_not_stall_event_loop(repo):
    payload = os.urandom(16 * 1024 * 1024)
    service = ArchiveExportService(repo=repo, fetcher=StubFetcher({"http://s/0": payload}))

    async def run():
        gaps = []
        done = asyncio.Event()

        async def ticker():
            last = time.perf_counter()
            while not done.is_set():
                await asyncio.sleep(0.01)
                now = time.perf_counter()
                gaps.append(now - last)
                last = now

        task = asyncio.create_task(ticker())
        await asyncio.sleep(0)
        size = 0
        async for chunk in service.stream_archive(_entries(1)):
            size += len(chunk)
        done.set()
        await task
        return size, max(gaps, default=0.0)

    size, worst_gap = asyncio.run(run())

    assert size > len(payload)
    assert worst_gap < 0.25
