import asyncio
import json
import logging
import re
import uuid
from datetime import timedelta
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

import firebase_admin
from firebase_admin import credentials, storage

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads"

_GCS_HOSTS = {"storage.googleapis.com", "storage.cloud.google.com"}
_FIREBASE_HOST = "firebasestorage.googleapis.com"
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStore(Protocol):
    async def upload(self, data: bytes, mime_type: str, filename: str) -> tuple[str, str]: ...

    async def delete(self, url: str) -> None: ...


def _safe_filename(filename: str) -> str:
    name = _UNSAFE_NAME_CHARS.sub("-", filename.rsplit("/", 1)[-1]).strip(".-")
    return name[:80] or "upload"


def blob_name_from_url(url: str, bucket_name: str) -> str:
    """Resolve the object name referenced by a gs://, GCS or Firebase download URL."""
    parsed = urlparse(url.strip())

    if parsed.scheme == "gs":
        bucket, name = parsed.netloc, parsed.path.lstrip("/")
    elif parsed.scheme in ("http", "https") and parsed.netloc in _GCS_HOSTS:
        bucket, _, name = parsed.path.lstrip("/").partition("/")
    elif parsed.scheme in ("http", "https") and parsed.netloc == _FIREBASE_HOST:
        match = re.fullmatch(r"/v0/b/([^/]+)/o/(.+)", parsed.path)
        if not match:
            raise ValueError(f"Unrecognised Firebase download URL: {url}")
        bucket, name = match.group(1), match.group(2)
    else:
        raise ValueError(f"Not a storage URL: {url}")

    name = unquote(name)
    if bucket != bucket_name:
        raise ValueError(f"URL points at bucket '{bucket}', expected '{bucket_name}'.")
    if not name:
        raise ValueError(f"No object name in URL: {url}")
    return name


class FirebaseBlobStore:
    """Temporary image staging in the project's Firebase Storage bucket."""

    def __init__(self, bucket_name: str, credentials_path: str, url_ttl_minutes: int = 15) -> None:
        self._bucket_name = bucket_name
        self._credentials_path = credentials_path
        self._url_ttl = timedelta(minutes=url_ttl_minutes)
        self._bucket = None

    def _get_bucket(self):
        if self._bucket is not None:
            return self._bucket

        if not firebase_admin._apps:
            try:
                cred = credentials.Certificate(json.loads(self._credentials_path))
            except (json.JSONDecodeError, ValueError):
                cred = credentials.Certificate(self._credentials_path)
            firebase_admin.initialize_app(cred, {"storageBucket": self._bucket_name})

        self._bucket = storage.bucket(self._bucket_name or None)
        return self._bucket

    def _do_upload(self, data: bytes, mime_type: str, filename: str) -> tuple[str, str]:
        pathname = f"{UPLOAD_PREFIX}/{uuid.uuid4().hex}-{_safe_filename(filename)}"
        blob = self._get_bucket().blob(pathname)
        blob.upload_from_string(data, content_type=mime_type)
        url = blob.generate_signed_url(version="v4", expiration=self._url_ttl, method="GET")
        return url, pathname

    def _do_delete(self, url: str) -> None:
        bucket = self._get_bucket()
        bucket.blob(blob_name_from_url(url, bucket.name)).delete()

    async def upload(self, data: bytes, mime_type: str, filename: str) -> tuple[str, str]:
        try:
            url, pathname = await asyncio.to_thread(self._do_upload, data, mime_type, filename)
        except Exception as exc:
            logger.error("Firebase upload failed: %s", exc, exc_info=True)
            raise
        logger.info("Staged upload %s (%d bytes).", pathname, len(data))
        return url, pathname

    async def delete(self, url: str) -> None:
        await asyncio.to_thread(self._do_delete, url)


async def cleanup(store: Optional[BlobStore], image_url: str) -> None:
    """Best-effort removal of a staged image. Never raises."""
    if not image_url:
        return
    if store is None:
        logger.warning("No blob store configured; staged image left in place.")
        return
    try:
        await store.delete(image_url)
        logger.info("Deleted staged image.")
    except Exception as exc:
        logger.warning("Could not delete staged image (%s): %s", type(exc).__name__, exc)
