from typing import Optional, Protocol

from google import genai
from google.genai import types

from ..config import settings
from ..exceptions import UpstreamFailure
from ..logger import logger


class VisionModel(Protocol):
    async def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        ...


class GeminiVisionModel:
    """Single-shot prompt + image call against the Gemini API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.timeout_ms = timeout_ms or settings.GEMINI_TIMEOUT_MS
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise UpstreamFailure("GEMINI_API_KEY is not configured")
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=self.timeout_ms),
            )
        return self._client

    async def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=[prompt, types.Part.from_bytes(data=image_bytes, mime_type=mime_type)],
            )
        except Exception as e:
            logger.error(f"Gemini request failed: {e}", extra={"model": self.model})
            raise UpstreamFailure(f"Gemini request failed: {e}")

        text = getattr(response, "text", None)
        if not text:
            logger.error("Gemini returned an empty response", extra={"model": self.model})
            raise UpstreamFailure("Gemini returned an empty response")
        return text
