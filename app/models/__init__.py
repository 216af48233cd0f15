# app/models/__init__.py

# === 文件模块 ===
from app.models.files.file_record import FileRecord
