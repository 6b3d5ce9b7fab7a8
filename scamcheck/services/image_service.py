import base64
import logging
from typing import Optional

import httpx

from ..models.analysis import FetchError, ImageFetchOutcome, InlineImage

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


def _declared_length(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def guess_mime_type(image_bytes: bytes, fallback: str = DEFAULT_MIME_TYPE) -> str:
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return fallback


def _bare_mime_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower() or DEFAULT_MIME_TYPE


class ImageFetcher:
    """Downloads a staged image and turns it into an inline (base64) payload.

    Failures are returned as ``FetchError`` values, never raised, so the caller
    can fall back to a text-only analysis.
    """

    def __init__(
        self,
        max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._max_bytes = max_bytes
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> ImageFetchOutcome:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    return await self._read_image(response)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Image fetch failed: %s", type(exc).__name__)
            return FetchError(reason="fetch failed", detail=str(exc))

    async def _read_image(self, response: httpx.Response) -> ImageFetchOutcome:
        if not response.is_success:
            return FetchError(reason="fetch failed", detail=response.status_code)

        content_type = response.headers.get("content-type", "")
        if not content_type.lower().startswith("image/"):
            return FetchError(reason="not an image", detail=content_type)

        # Rejected before the body is touched.
        declared = _declared_length(response.headers.get("content-length"))
        if declared is not None and declared > self._max_bytes:
            return FetchError(reason="too large", detail=declared)

        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > self._max_bytes:
                return FetchError(reason="too large", detail=len(body))

        return InlineImage(
            mime_type=_bare_mime_type(content_type),
            data=base64.b64encode(bytes(body)).decode("ascii"),
        )
