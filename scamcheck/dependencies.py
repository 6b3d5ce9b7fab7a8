from functools import lru_cache
from typing import Optional

from fastapi import Depends

from .config import Settings, get_settings
from .services.analysis_service import AnalysisService
from .services.storage_service import BlobStore, FirebaseBlobStore


@lru_cache
def _firebase_store(bucket_name: str, credentials_path: str, url_ttl_minutes: int) -> FirebaseBlobStore:
    return FirebaseBlobStore(bucket_name, credentials_path, url_ttl_minutes)


def get_blob_store(settings: Settings = Depends(get_settings)) -> Optional[BlobStore]:
    if not settings.firebase_storage_bucket:
        return None
    return _firebase_store(
        settings.firebase_storage_bucket,
        settings.firebase_credentials_path,
        settings.upload_url_ttl_minutes,
    )


def get_analysis_service(
    settings: Settings = Depends(get_settings),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
) -> AnalysisService:
    return AnalysisService(settings, blob_store=blob_store)
