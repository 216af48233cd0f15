import io
import zipfile
from typing import Iterator

from app.utils.filename_utils import unique_entry_name


class _StreamSink(io.RawIOBase):
    """
    只追加、不可 seek 的输出端。
    zipfile 写入到这里后由 drain() 取走，缓冲区只保留尚未发送的字节。
    不可 seek 时 zipfile 会自动为每个条目写 data descriptor。
    """

    def __init__(self):
        super().__init__()
        self._buffer = bytearray()

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        self._buffer += b
        return len(b)

    def drain(self) -> bytes:
        data = bytes(self._buffer)
        self._buffer.clear()
        return data


class ZipStream:
    """
    边写边产出的 zip 归档。

    用法:
        zs = ZipStream()
        for chunk in zs.add_entry("a.txt", data):
            yield chunk
        yield zs.finish()
    """

    def __init__(self, compress_level: int = 9):
        self._sink = _StreamSink()
        self._zip = zipfile.ZipFile(
            self._sink,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compress_level,
        )
        self._used_names: set = set()
        self.entry_count = 0

    def add_entry(self, name: str, data: bytes, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        """写入一个条目，每写完一个分块就把已压缩的字节产出。"""
        entry_name = unique_entry_name(name, self._used_names)
        view = memoryview(data)
        force_zip64 = len(data) * 1.05 > zipfile.ZIP64_LIMIT

        with self._zip.open(entry_name, mode="w", force_zip64=force_zip64) as dest:
            for start in range(0, len(view), chunk_size):
                dest.write(view[start:start + chunk_size])
                chunk = self._sink.drain()
                if chunk:
                    yield chunk

        self.entry_count += 1
        # 条目结束时写出的剩余压缩数据和 data descriptor
        tail = self._sink.drain()
        if tail:
            yield tail

    def finish(self) -> bytes:
        """写入中央目录并返回最后的字节。"""
        self._zip.close()
        return self._sink.drain()
