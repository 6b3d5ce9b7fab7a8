import base64
import binascii
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..dependencies import get_blob_store
from ..models.upload import UploadRequest, UploadResponse
from ..services.image_service import guess_mime_type
from ..services.storage_service import BlobStore

router = APIRouter(prefix="/upload", tags=["Upload"])
logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}


@router.post(
    "",
    response_model=UploadResponse,
    summary="Stage an image for analysis",
    description=(
        "Stores a JPEG, PNG or WebP image in temporary storage and returns a short-lived URL "
        "to pass as image_url to /analyze. The image is deleted once analyzed."
    ),
)
async def upload_route(
    request: UploadRequest,
    settings: Settings = Depends(get_settings),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
):
    payload = request.data_base64
    if payload.startswith("data:"):
        payload = payload.split(",", 1)[-1]

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="data_base64 is not valid base64.")

    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded image is empty.")

    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image exceeds {settings.max_upload_bytes} bytes.",
        )

    content_type = (request.mime_type or guess_mime_type(data, fallback="")).lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported image type '{content_type or 'unknown'}'.",
        )

    if blob_store is None:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Missing FIREBASE_STORAGE_BUCKET"},
        )

    try:
        url, pathname = await blob_store.upload(data, content_type, request.filename)
    except Exception as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Upload failed", "detail": str(exc)},
        )

    return UploadResponse(url=url, pathname=pathname, content_type=content_type, size=len(data))
