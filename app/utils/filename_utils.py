import posixpath
from urllib.parse import quote
from uuid import uuid4


def repair_filename(name: str) -> str:
    """
    修复被旧式 multipart 编码器按 latin-1 解码的 UTF-8 文件名。

    只有当文件名能完整地 latin-1 -> bytes -> utf-8 往返时才采用修复结果，
    否则原样返回（正常的 Unicode 文件名会在 latin-1 编码这一步失败）。
    """
    try:
        return name.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return name


def derive_extension(file_name: str) -> str:
    """
    取最后一个 '.' 之后的后缀并转为小写。
    "report.PDF" -> "pdf", "README" -> "", ".bashrc" -> "", "a.tar.gz" -> "gz"
    """
    # 只看最后一段，避免目录分隔符干扰
    base = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    return posixpath.splitext(base)[1].lstrip(".").lower()


def build_object_key(upload_folder: str, file_name: str) -> str:
    """
    生成对象存储的 key: "{folder}{uuid}/{百分号编码的文件名}"。
    uuid 段保证同名文件不会互相覆盖。
    """
    folder = upload_folder or ""
    if folder and not folder.endswith("/"):
        folder = f"{folder}/"
    return f"{folder.lstrip('/')}{uuid4().hex}/{quote(file_name, safe='')}"


def unique_entry_name(file_name: str, used: set) -> str:
    """
    归档内的条目名去重: "a.txt" 重复时依次变为 "a (1).txt"、"a (2).txt"。
    返回的名字会被加入 used。
    """
    candidate = file_name or "unnamed"
    if candidate in used:
        stem, suffix = posixpath.splitext(candidate)
        n = 1
        while f"{stem} ({n}){suffix}" in used:
            n += 1
        candidate = f"{stem} ({n}){suffix}"
    used.add(candidate)
    return candidate
