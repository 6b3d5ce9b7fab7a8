import logging
from typing import Any, Optional, Protocol

from ..config import Settings
from ..models.analysis import AnalysisRequest, FetchError, ImageFetchOutcome, InlineImage
from .errors import ConfigurationError
from .gemini_service import GeminiConfig, GeminiGateway
from .image_service import ImageFetcher
from .prompt_service import build_prompt
from .sanitizer import sanitize, validate_report
from .storage_service import BlobStore, cleanup

logger = logging.getLogger(__name__)


class ModelGateway(Protocol):
    async def complete(self, prompt_text: str, image: Optional[InlineImage] = None) -> str: ...


class AnalysisService:
    """fetch image -> build prompt -> call model -> sanitize, then always clean up."""

    def __init__(
        self,
        settings: Settings,
        gateway: Optional[ModelGateway] = None,
        fetcher: Optional[ImageFetcher] = None,
        blob_store: Optional[BlobStore] = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway or GeminiGateway(
            GeminiConfig(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                temperature=settings.gemini_temperature,
                timeout_seconds=settings.model_timeout_seconds,
            )
        )
        self._fetcher = fetcher or ImageFetcher(
            max_bytes=settings.max_image_bytes,
            timeout=settings.image_fetch_timeout_seconds,
        )
        self._blob_store = blob_store

    async def _resolve_image(self, image_url: str) -> Optional[ImageFetchOutcome]:
        if not image_url:
            return None
        outcome = await self._fetcher.fetch(image_url)
        if isinstance(outcome, FetchError):
            logger.warning("Continuing without image: %s (%s)", outcome.reason, outcome.detail)
        return outcome

    async def analyze(self, request: AnalysisRequest) -> Any:
        image_url = request.image_url
        logger.info(
            "Analysis started: messages=%d context=%d link=%d notes=%d image=%s",
            len(request.messages_text),
            len(request.user_context),
            len(request.link_url),
            len(request.extra_notes),
            bool(image_url),
        )

        try:
            if not self._settings.gemini_api_key:
                raise ConfigurationError("Missing GEMINI_API_KEY")

            outcome = await self._resolve_image(image_url)
            prompt = build_prompt(request, outcome)
            raw = await self._gateway.complete(prompt.text, prompt.image)
            report = sanitize(raw)

            if self._settings.strict_report_validation:
                validate_report(report)

            logger.info("Analysis finished.")
            return report
        finally:
            await cleanup(self._blob_store, image_url)
