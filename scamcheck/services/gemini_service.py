import base64
import logging
from dataclasses import dataclass
from typing import Optional

from google import genai
from google.genai import types

from ..models.analysis import InlineImage
from .errors import ConfigurationError, GatewayError

logger = logging.getLogger(__name__)


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = "gemini-2.5-flash"
    temperature: float = 0.2
    timeout_seconds: float = 60.0


class GeminiGateway:
    """Single-shot text completion against Gemini, JSON response mode."""

    def __init__(self, cfg: GeminiConfig) -> None:
        self._cfg = cfg
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if not self._cfg.api_key:
            raise ConfigurationError("Missing GEMINI_API_KEY")
        if self._client is None:
            self._client = genai.Client(
                api_key=self._cfg.api_key,
                http_options=types.HttpOptions(timeout=int(self._cfg.timeout_seconds * 1000)),
            )
        return self._client

    async def complete(self, prompt_text: str, image: Optional[InlineImage] = None) -> str:
        client = self._get_client()

        parts = [types.Part.from_text(text=prompt_text)]
        if image is not None:
            parts.append(
                types.Part.from_bytes(data=base64.b64decode(image.data), mime_type=image.mime_type)
            )

        try:
            response = await client.aio.models.generate_content(
                model=self._cfg.model,
                contents=[types.Content(role="user", parts=parts)],
                config=types.GenerateContentConfig(
                    temperature=self._cfg.temperature,
                    response_mime_type="application/json",
                ),
            )
        except Exception as exc:
            logger.warning("Gemini request failed (%s).", type(exc).__name__)
            raise GatewayError(str(exc) or type(exc).__name__) from exc

        return response.text or ""
