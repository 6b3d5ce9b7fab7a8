from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# The Google SDKs (genai, firebase-admin) read os.environ directly.
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.2
    model_timeout_seconds: float = 60.0

    image_fetch_timeout_seconds: float = 15.0
    max_image_bytes: int = 5 * 1024 * 1024
    max_upload_bytes: int = 3 * 1024 * 1024
    upload_url_ttl_minutes: int = 15

    # Off: only top-level arrays and confidence are repaired.
    strict_report_validation: bool = False

    firebase_storage_bucket: str = ""
    firebase_credentials_path: str = "firebase-credentials.json"

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
