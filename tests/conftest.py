from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies.services import (
    get_auth_service,
    get_file_record_repo,
    get_object_fetcher,
    get_storage_client,
)
from app.enums.query_enums import FileSortField, SortOrder
from app.infra.storage.object_fetcher import ObjectFetcher
from app.infra.storage.storage_interface import StorageClientInterface
from app.main import app
from app.models.files.file_record import FileRecord
from app.schemas.file.file_record_schemas import ExportEntry
from app.services.auth_service import AuthService
from app.utils.url_builder import quote_object_name

STORAGE_HOST = "storage.test"
STORAGE_BASE_URL = f"http://{STORAGE_HOST}/bucket"
ACCESS_PASSWORD = "open-sesame"


class InMemoryStorageClient(StorageClientInterface):
    """把对象保存在字典里的存储客户端。"""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.put_calls: List[str] = []
        self.removed: List[str] = []
        # key 中包含这些片段时 put 失败
        self.fail_on: Set[str] = set()
        self.fail_delete = False

    def put_object(self, object_name, data, length, content_type):
        self.put_calls.append(object_name)
        if any(token in object_name for token in self.fail_on):
            raise RuntimeError("simulated storage outage")
        self.objects[object_name] = data.read()
        self.content_types[object_name] = content_type
        return {"ETag": "d41d8cd98f00b204e9800998ecf8427e"}

    def remove_object(self, object_name):
        if self.fail_delete:
            raise RuntimeError("simulated delete failure")
        self.removed.append(object_name)
        self.objects.pop(object_name, None)

    def build_final_url(self, object_name):
        return f"{STORAGE_BASE_URL}/{quote_object_name(object_name)}"


class InMemoryFileRecordRepository:
    """与 FileRecordRepository 同接口的内存实现。"""

    def __init__(self):
        self.rows: Dict[int, FileRecord] = {}
        self._pending: List[FileRecord] = []
        self._next_id = 1
        self.insert_calls = 0
        self.query_calls = 0
        self.fail_insert = False
        self.fail_query = False
        self.fail_delete = False

    def seed(self, file_name: str, blob_url: str, object_key: str, size_bytes: int = 1,
             uploaded_at: Optional[datetime] = None) -> FileRecord:
        record = FileRecord(
            id=self._next_id,
            file_name=file_name,
            extension=file_name.rsplit(".", 1)[-1].lower() if "." in file_name.lstrip(".") else "",
            blob_url=blob_url,
            object_key=object_key,
            size_bytes=size_bytes,
            uploaded_at=uploaded_at or datetime.now(timezone.utc) + timedelta(seconds=self._next_id),
        )
        self.rows[record.id] = record
        self._next_id += 1
        return record

    async def bulk_insert(self, rows):
        self.insert_calls += 1
        if self.fail_insert:
            raise SQLAlchemyError("simulated insert failure")
        for row in rows:
            self._pending.append(FileRecord(**row.model_dump()))
        return len(rows)

    async def commit(self):
        for record in self._pending:
            record.id = self._next_id
            record.uploaded_at = datetime.now(timezone.utc)
            self.rows[record.id] = record
            self._next_id += 1
        self._pending = []

    async def rollback(self):
        self._pending = []

    async def list_sorted(self, field: FileSortField, order: SortOrder):
        if self.fail_query:
            raise SQLAlchemyError("simulated query failure")
        records = sorted(
            self.rows.values(),
            key=lambda r: (getattr(r, FileSortField(field).value), r.id),
            reverse=order == SortOrder.DESC,
        )
        return records

    async def get_entries_by_ids(self, ids):
        self.query_calls += 1
        if self.fail_query:
            raise SQLAlchemyError("simulated query failure")
        return [
            ExportEntry(file_name=self.rows[i].file_name, blob_url=self.rows[i].blob_url)
            for i in sorted(ids) if i in self.rows
        ]

    async def get_by_id(self, item_id):
        return self.rows.get(item_id)

    async def delete(self, db_obj):
        if self.fail_delete:
            raise SQLAlchemyError("simulated delete failure")
        self.rows.pop(db_obj.id, None)


def make_storage_transport(storage: InMemoryStorageClient, broken: Set[str]) -> httpx.MockTransport:
    """把 blob_url 映射回内存存储；key 在 broken 中时返回 500。"""
    prefix = "/bucket/"

    def handler(request: httpx.Request) -> httpx.Response:
        # URL.path 已经解码一次，恰好得到存储的 key
        key = request.url.path[len(prefix):]
        if key in broken:
            return httpx.Response(500)
        if key not in storage.objects:
            return httpx.Response(404)
        return httpx.Response(200, content=storage.objects[key])

    return httpx.MockTransport(handler)


@pytest.fixture
def storage() -> InMemoryStorageClient:
    return InMemoryStorageClient()


@pytest.fixture
def repo() -> InMemoryFileRecordRepository:
    return InMemoryFileRecordRepository()


@pytest.fixture
def broken_keys() -> Set[str]:
    return set()


@pytest.fixture
def fetcher(storage, broken_keys) -> ObjectFetcher:
    return ObjectFetcher(transport=make_storage_transport(storage, broken_keys))


@pytest.fixture
def access_password() -> str:
    return ACCESS_PASSWORD


@pytest.fixture
def client(storage, repo, fetcher):
    app.dependency_overrides[get_storage_client] = lambda: storage
    app.dependency_overrides[get_file_record_repo] = lambda: repo
    app.dependency_overrides[get_object_fetcher] = lambda: fetcher
    app.dependency_overrides[get_auth_service] = lambda: AuthService(access_password=ACCESS_PASSWORD)
    yield TestClient(app, follow_redirects=False)
    app.dependency_overrides.clear()
