import threading
from typing import Optional

from app.config.config_settings.config_schema import StorageConfig
from app.core.logger import logger
from app.infra.storage.storage_interface import StorageClientInterface
from app.infra.storage.s3_client import S3CompatibleClient


class StorageFactory:
    """
    进程级的存储客户端工厂。

    客户端在第一次被请求时根据 `storage` 配置创建并缓存，
    之后每个请求都通过依赖注入拿到同一个实例。
    """

    def __init__(self, config: StorageConfig):
        self._config = config
        self._client: Optional[StorageClientInterface] = None
        self._lock = threading.Lock()

    @property
    def config(self) -> StorageConfig:
        return self._config

    def get_client(self) -> StorageClientInterface:
        if self._client is None:
            with self._lock:
                # Double-checked locking
                if self._client is None:
                    self._client = self._create_client()
        return self._client

    def _create_client(self) -> StorageClientInterface:
        logger.info(f"Initializing storage client of type '{self._config.type}'...")
        if self._config.type in ("s3", "minio"):
            client = S3CompatibleClient(params=self._config.params)
        else:
            raise ValueError(f"Unsupported storage client type '{self._config.type}'.")

        if self._config.ensure_bucket and self._config.params.capabilities.supports_bucket_creation:
            client.create_bucket_if_not_exists(client.bucket_name)
        logger.info(f"Storage client ready for bucket '{self._config.params.bucket_name}'.")
        return client
