from typing import Optional, Literal

from pydantic import BaseModel, Field


class StorageCapabilities(BaseModel):
    """
    描述对象存储服务的特性与能力集。
    默认值代表一个“功能齐全”的 S3 兼容服务 (如 MinIO, AWS S3)。
    """

    supports_acl: bool = Field(
        default=True,
        description="是否支持对象 ACL 控制 (S3/MinIO: True, R2: False)"
    )

    supports_bucket_creation: bool = Field(
        default=True,
        description="是否允许通过API创建bucket"
    )

    supports_cdn_rewrite: bool = Field(
        default=True,
        description="是否支持将内网URL重写为CDN URL"
    )

    signature_version: Literal["v2", "v4"] = Field(
        default="v4",
        description="签名算法版本 (v4 是现代标准)"
    )

    path_style: Literal["auto", "path", "virtual"] = Field(
        default="auto",
        description="寻址风格 (auto 适用于 S3/R2，本地 MinIO 可能需要 'path')"
    )


class S3Params(BaseModel):
    """
    S3 兼容服务的客户端参数 (AWS S3, MinIO, R2 ...)
    """

    endpoint: Optional[str] = None
    """
    服务地址 (不含 http/https)。
    - AWS S3: 留空，Boto3 会根据 region 自动生成。
    - MinIO/R2: 必须填写, e.g., 'your-minio:9000'
    """

    region: str = "us-east-1"
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    bucket_name: str = "files"
    secure: bool = True

    default_acl: Optional[str] = "public-read"
    """
    上传对象时使用的 ACL。文件管理器依赖公开可读的 blob_url，
    Cloudflare R2 等不支持 ACL 的服务应设置为 None 并开放桶策略。
    """

    public_endpoint: Optional[str] = None
    """公网访问端点 (不含 http/https, 不含 bucket)"""

    cdn_base_url: Optional[str] = None
    """CDN 完整域名 (不含 bucket)"""

    secure_cdn: bool = True

    connect_timeout: int = 60
    read_timeout: int = 60

    capabilities: StorageCapabilities = Field(default_factory=StorageCapabilities)


class StorageConfig(BaseModel):
    type: Literal["minio", "s3"] = "s3"
    params: S3Params = Field(default_factory=S3Params)
    upload_folder: str = Field("uploads/", description="对象 key 的公共前缀")
    upload_concurrency: int = Field(1, ge=1, description="单个批次内并发写入对象存储的上限")
    ensure_bucket: bool = Field(False, description="启动时检查并创建存储桶")


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    api_prefix: str = ""
    env: str = "development"


class DatabaseConfig(BaseModel):
    url: str
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 20
    pool_pre_ping: bool = True


class LoggingConfig(BaseModel):
    enable_file: bool = False
    log_dir: str = "logs"
    rotation: str = "1 week"
    retention: str = "1 month"
    level: str = "INFO"


class SecuritySettings(BaseModel):
    access_password: Optional[str] = Field(None, description="访问文件管理器的共享口令")


class ExportConfig(BaseModel):
    archive_name: str = "files.zip"
    fetch_timeout: float = 30.0
    chunk_size: int = Field(64 * 1024, gt=0)
    compress_level: int = Field(9, ge=0, le=9)


# ========================================================================================
#
#   所有配置模型都要写在 AppConfig 上方
#
# ========================================================================================
class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
