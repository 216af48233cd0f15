import io
import zipfile


# 测试多文件上传：全部写入对象存储后一次性写入元数据
def test_upload_multiple_files(client, storage, repo):
    response = client.post(
        "/upload",
        files=[
            ("files", ("notes.txt", b"hello", "text/plain")),
            ("files", ("report.PDF", b"%PDF-1.4", "application/pdf")),
        ],
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/files"

    assert repo.insert_calls == 1
    assert len(repo.rows) == 2
    assert len(storage.objects) == 2

    records = sorted(repo.rows.values(), key=lambda r: r.id)
    assert [r.file_name for r in records] == ["notes.txt", "report.PDF"]
    assert [r.extension for r in records] == ["txt", "pdf"]
    assert [r.size_bytes for r in records] == [5, 8]
    for r in records:
        assert r.object_key.startswith("uploads/")
        assert r.blob_url.startswith("http://storage.test/bucket/uploads/")
        assert storage.objects[r.object_key]

    assert storage.content_types[records[1].object_key] == "application/pdf"


# 测试单个文件字段 file 同样被接受
def test_upload_single_file_field(client, repo):
    response = client.post("/upload", files={"file": ("README", b"read me", "text/plain")})
    assert response.status_code == 303
    (record,) = repo.rows.values()
    assert record.file_name == "README"
    assert record.extension == ""


# 测试同名文件上传两次会得到两个不同的对象
def test_upload_same_name_twice_keeps_both(client, storage, repo):
    client.post("/upload", files={"files": ("a.txt", b"one", "text/plain")})
    client.post("/upload", files={"files": ("a.txt", b"two", "text/plain")})
    assert len(repo.rows) == 2
    assert len(storage.objects) == 2
    assert sorted(storage.objects.values()) == [b"one", b"two"]


# 测试没有文件时返回 400，且不会访问对象存储
def test_upload_without_files(client, storage, repo):
    response = client.post("/upload")
    assert response.status_code == 400
    assert response.json()["code"] == 40020
    assert response.json()["data"] is None
    assert storage.put_calls == []
    assert repo.insert_calls == 0


# 测试批次中一个文件写入失败：不写入任何元数据
def test_upload_storage_failure_writes_no_rows(client, storage, repo):
    storage.fail_on.add("bad.txt")
    response = client.post(
        "/upload",
        files=[
            ("files", ("a.txt", b"a", "text/plain")),
            ("files", ("bad.txt", b"b", "text/plain")),
            ("files", ("c.txt", b"c", "text/plain")),
        ],
    )
    assert response.status_code == 500
    assert response.json()["code"] == 50020
    assert repo.insert_calls == 0
    assert repo.rows == {}
    # 失败之后的文件不再上传，已写入的对象保留
    assert len(storage.put_calls) == 2
    assert len(storage.objects) == 1


# 测试元数据写入失败：返回 500，已写入的对象保留
def test_upload_metadata_failure(client, storage, repo):
    repo.fail_insert = True
    response = client.post(
        "/upload",
        files=[
            ("files", ("a.txt", b"a", "text/plain")),
            ("files", ("b.txt", b"b", "text/plain")),
        ],
    )
    assert response.status_code == 500
    assert response.json()["code"] == 50021
    assert repo.rows == {}
    assert len(storage.objects) == 2


# 测试非 ASCII 文件名：上传、列表、打包下载都保持原样
def test_upload_unicode_name_round_trip(client, storage, repo):
    name = "단위테스트.txt"
    payload = "안녕하세요".encode("utf-8")
    response = client.post("/upload", files={"files": (name, payload, "text/plain")})
    assert response.status_code == 303

    (record,) = repo.rows.values()
    assert record.file_name == name
    assert record.extension == "txt"
    assert storage.objects[record.object_key] == payload

    listing = client.get("/files").json()["data"]
    assert listing["items"][0]["file_name"] == name

    archive = client.get("/download-multiple", params={"ids": str(record.id)})
    assert archive.status_code == 200
    with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
        assert zf.namelist() == [name]
        assert zf.read(name) == payload
