from typing import Optional

from pydantic import BaseModel, Field


class UploadRequest(BaseModel):
    filename: str = Field("upload", min_length=1, max_length=200, description="Original file name")
    mime_type: Optional[str] = Field(None, description="e.g. image/png, image/jpeg")
    data_base64: str = Field(..., min_length=1, description="Base64 encoded image bytes")


class UploadResponse(BaseModel):
    url: str
    pathname: str
    content_type: str
    size: int
