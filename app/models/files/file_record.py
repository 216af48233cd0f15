from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, DateTime, func
from sqlmodel import Field, SQLModel


class FileRecord(SQLModel, table=True):
    """
    文件记录实体类。
    存储上传到对象存储的文件的元数据，文件内容本身只存在于对象存储中。
    """
    __tablename__ = "files"

    id: Optional[int] = Field(default=None, primary_key=True)

    # --- 核心元数据 ---
    file_name: str = Field(..., description="用户上传时的原始文件名（含扩展名）")
    extension: str = Field(default="", max_length=255, description="小写的文件后缀，无后缀时为空字符串")
    blob_url: str = Field(..., description="对象存储返回的公开访问地址，导出时据此拉取文件")
    object_key: str = Field(
        ...,
        unique=True,
        index=True,
        description="文件在对象存储中的唯一键，删除时只使用它"
    )
    size_bytes: int = Field(..., sa_type=BigInteger, description="文件大小（字节）")

    uploaded_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False),
        description="上传时间，由数据库生成"
    )
