from typing import BinaryIO, Dict, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError

from app.config.config_settings.config_schema import S3Params
from app.core.logger import logger
from app.infra.storage.storage_interface import StorageClientInterface
from app.utils.url_builder import build_public_storage_url

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class S3CompatibleClient(StorageClientInterface):
    def __init__(self, params: S3Params):
        self.s3_conf = params
        self.capabilities = self.s3_conf.capabilities
        self.endpoint_url = self._get_base_url()
        self.bucket_name = self.s3_conf.bucket_name
        self.public_base_url = self._get_public_base_url()

        # Boto3 接受: 'auto' (None), 'path', 'virtual'
        addressing_style = self.capabilities.path_style
        if addressing_style == 'auto':
            addressing_style = None

        # Pydantic: "v4" -> Boto3: "s3v4", "v2" -> "s3" (legacy)
        signature_version_map = {"v4": "s3v4", "v2": "s3"}
        signature_version = signature_version_map.get(self.capabilities.signature_version, "s3v4")

        client_config = BotoConfig(
            signature_version=signature_version,
            s3={'addressing_style': addressing_style},
            connect_timeout=self.s3_conf.connect_timeout,
            read_timeout=self.s3_conf.read_timeout
        )

        self.s3 = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.s3_conf.access_key,
            aws_secret_access_key=self.s3_conf.secret_key,
            config=client_config,
            region_name=self.s3_conf.region
        )

    def _get_base_url(self) -> Optional[str]:
        # endpoint 为 None 时是 AWS S3
        if not self.s3_conf.endpoint:
            return None
        protocol = "https" if self.s3_conf.secure else "http"
        return f"{protocol}://{self.s3_conf.endpoint}"

    def _get_public_base_url(self) -> Optional[str]:
        if not self.s3_conf.public_endpoint:
            return None
        protocol = "https" if self.s3_conf.secure_cdn else "http"
        return f"{protocol}://{self.s3_conf.public_endpoint}"

    def build_final_url(self, object_name: str) -> str:
        """构建最终可访问的 URL (可能是 CDN URL)"""
        return build_public_storage_url(
            object_name=object_name,
            cdn_base_url=self.s3_conf.cdn_base_url,
            public_base_url=self.public_base_url,
            internal_base_url=self.endpoint_url,
            bucket_name=self.bucket_name,
            capabilities=self.capabilities
        )

    def put_object(
            self,
            object_name: str,
            data: BinaryIO,
            length: int,
            content_type: str,
            acl: str = "USE_CONFIG",
    ) -> Dict:
        """底层 put_object 方法"""
        logger.info(f"[S3 Driver] Putting object: {object_name} ({length} bytes)")

        params = {
            "Bucket": self.bucket_name,
            "Key": object_name,
            "Body": data,
            "ContentLength": length,
            "ContentType": content_type,
        }

        final_acl = self.s3_conf.default_acl if acl == "USE_CONFIG" else acl
        if self.capabilities.supports_acl and final_acl:
            params["ACL"] = final_acl
            logger.debug(f"[S3 Driver] Applying ACL '{final_acl}' for {object_name}.")
        else:
            logger.debug(f"[S3 Driver] No ACL will be applied for {object_name} (not supported or not configured).")

        response = self.s3.put_object(**params)

        # boto3 返回的 ETag 带有双引号，我们需要移除它们
        etag = response.get('ETag')
        if etag:
            response['ETag'] = etag.strip('"')
        logger.info(f"[S3 Driver] Upload for {object_name} complete.")
        return response

    def remove_object(self, object_name: str):
        """底层 remove_object 方法，对象已不存在时视为成功"""
        logger.info(f"[S3 Driver] Removing object: {object_name}")
        try:
            return self.s3.delete_object(Bucket=self.bucket_name, Key=object_name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_OBJECT_CODES:
                logger.warning(f"[S3 Driver] Object {object_name} already missing, treating delete as done.")
                return None
            raise

    def create_bucket_if_not_exists(self, bucket_name: str):
        try:
            self.s3.head_bucket(Bucket=bucket_name)
            logger.debug(f"[S3 Driver] Bucket '{bucket_name}' already exists.")
        except ClientError as e:
            if e.response['Error']['Code'] != '404':
                logger.error(f"[S3 Driver] Error checking bucket: {e}")
                raise

            logger.info(f"[S3 Driver] Bucket '{bucket_name}' not found. Creating...")
            # 对于非 us-east-1 的 AWS S3，创建时必须指定区域
            if self.s3_conf.region != "us-east-1" and not self.s3_conf.endpoint:
                self.s3.create_bucket(
                    Bucket=bucket_name,
                    CreateBucketConfiguration={'LocationConstraint': self.s3_conf.region}
                )
            else:
                self.s3.create_bucket(Bucket=bucket_name)
            logger.info(f"[S3 Driver] Successfully created bucket '{bucket_name}'.")
