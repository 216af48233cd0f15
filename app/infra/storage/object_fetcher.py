from typing import Optional

import httpx

from app.core.exceptions import ObjectFetchException
from app.core.logger import logger


class ObjectFetcher:
    """
    通过对象的公开 URL 拉取对象内容。

    导出归档时逐个调用 fetch；任何非 2xx 或传输错误都转换为
    ObjectFetchException，由调用方决定跳过该文件。
    """

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    async def fetch(self, url: str) -> bytes:
        logger.debug(f"[Fetcher] GET {url}")
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            raise ObjectFetchException(url=url, reason=repr(e)) from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise ObjectFetchException(url=url, reason=f"HTTP {resp.status_code}")
        return resp.content

    async def aclose(self) -> None:
        await self._client.aclose()
