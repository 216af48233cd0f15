# in app/utils/url_builder.py

from typing import Optional
from urllib.parse import quote

from app.config.config_settings.config_schema import StorageCapabilities
from app.core.logger import logger


def quote_object_name(object_name: str) -> str:
    """
    把对象 key 编码为 URL 路径。
    key 本身可能已含百分号编码的文件名，这里会再编码一次，
    保证 URL 路径解码后恰好得到存储时的 key。
    """
    return quote(object_name.lstrip('/'), safe="/")


def build_public_storage_url(
    object_name: str,
    cdn_base_url: Optional[str],
    public_base_url: Optional[str],  # 来自 S3Params.public_endpoint
    internal_base_url: Optional[str],  # 来自 S3Params.endpoint
    bucket_name: str,
    capabilities: StorageCapabilities
) -> Optional[str]:
    """
    根据传入的上下文构建公共 URL，不读取任何全局设置。

    URL 生成逻辑:
    1. 【CDN】如果配置了 cdn_base_url 且 capabilities 允许，优先使用。
    2. 【公网 Endpoint】如果配置了 public_base_url，根据 path_style 使用。
    3. 【内网 Endpoint】作为回退，根据 path_style 使用。
    4. 都没有时，按 AWS S3 的 virtual-hosted 风格生成。
    """
    if not object_name:
        return None

    path = quote_object_name(object_name)

    # --- 优先级 1: CDN ---
    if capabilities.supports_cdn_rewrite and cdn_base_url:
        return f"{cdn_base_url.rstrip('/')}/{path}"

    # --- 优先级 2: 公网 Endpoint ---
    if public_base_url:
        base_url = public_base_url.rstrip('/')
        if capabilities.path_style == "path":
            return f"{base_url}/{bucket_name}/{path}"
        return f"{base_url}/{path}"

    # --- 优先级 3: 内网 Endpoint ---
    if internal_base_url:
        logger.warning(
            f"Building public URL for {object_name} using internal endpoint. "
            f"Consider setting 'public_endpoint' for this client."
        )
        base_url = internal_base_url.rstrip('/')
        if capabilities.path_style == "path":
            return f"{base_url}/{bucket_name}/{path}"
        return f"{base_url}/{path}"

    # --- 优先级 4: 标准 AWS S3 ---
    return f"https://{bucket_name}.s3.amazonaws.com/{path}"
