"""
Blob storage for image bytes.

The catalog only records URLs; the bytes live in an external image store
reached over HTTP. Deleting an image that is already gone is not an error.
"""
from typing import Any, Dict, Optional, Protocol

import httpx
from structlog import get_logger

from app.config import settings
from app.core.errors import UploadFailure
from app.utils.retry import retry

logger = get_logger()


def _client_error(error: BaseException) -> bool:
    return isinstance(error, httpx.HTTPStatusError) and error.response.status_code < 500


retry_transient = retry(tries=3, delay=1, backoff=2, exceptions=(httpx.HTTPError,), giveup=_client_error)


class ImageStore(Protocol):
    async def put(self, content: bytes, metadata: Dict[str, Any]) -> str:
        ...

    async def delete(self, url: str) -> None:
        ...


class HttpImageStore:
    def __init__(
        self, base_url: str = None, api_key: str = None, timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.IMAGE_STORE_URL).rstrip("/")
        self.api_key = api_key or settings.IMAGE_STORE_API_KEY
        self.timeout = timeout or settings.IMAGE_STORE_TIMEOUT
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"X-Api-Key": self.api_key}

    @retry_transient
    async def _upload(self, content: bytes, metadata: Dict[str, Any]) -> str:
        filename = metadata.get("filename") or "image"
        content_type = metadata.get("content_type") or "application/octet-stream"
        fields = {k: str(v) for k, v in metadata.items() if v is not None and k not in ("filename", "content_type")}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.base_url}/images",
                headers=self._headers(),
                data=fields,
                files={"file": (filename, content, content_type)},
            )
            response.raise_for_status()
            return response.json()["url"]

    async def put(self, content: bytes, metadata: Dict[str, Any]) -> str:
        try:
            url = await self._upload(content, metadata)
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Image upload failed", filename=metadata.get("filename"), error=str(e))
            raise UploadFailure() from e
        logger.info("Image uploaded", url=url, size=len(content))
        return url

    @retry_transient
    async def _remove(self, url: str) -> Optional[int]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.delete(f"{self.base_url}/images", headers=self._headers(), params={"url": url})
            if response.status_code == 404:
                return response.status_code
            response.raise_for_status()
            return response.status_code

    async def delete(self, url: str) -> None:
        try:
            status_code = await self._remove(url)
        except httpx.HTTPError as e:
            logger.error("Image delete failed", url=url, error=str(e))
            raise UploadFailure("Image delete failed") from e
        if status_code == 404:
            logger.info("Image already absent from store", url=url)
        else:
            logger.info("Image deleted from store", url=url)
