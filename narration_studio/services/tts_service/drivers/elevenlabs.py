import asyncio
from typing import Any, ClassVar

import aiohttp

from narration_studio.shared.config import DEFAULT_VOICE_ID, StudioConfig
from narration_studio.shared.errors import ProviderError
from narration_studio.shared.http_client import AsyncHTTPClient
from narration_studio.shared.logging_utils import setup_logging

from .base import TTSEngine

logger = setup_logging("elevenlabs-driver")


class ElevenLabsTTSEngine(TTSEngine):
    """ElevenLabs text-to-speech over its REST API, returning MP3 bytes."""

    OUTPUT_FORMAT: ClassVar[str] = "mp3"

    def __init__(
        self,
        api_key: str | None,
        voice_id: str = DEFAULT_VOICE_ID,
        model_id: str = "eleven_turbo_v2_5",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        api_base: str = "https://api.elevenlabs.io",
        timeout: int = 30,
        client_factory: Any = None,
    ) -> None:
        """
        Initialize ElevenLabs TTS engine.

        Args:
            api_key: ElevenLabs API key; synthesis fails without one
            voice_id: Default voice when a call does not name one
            model_id: ElevenLabs model identifier
            stability: Voice stability setting (0-1)
            similarity_boost: Voice similarity boost setting (0-1)
            api_base: API root URL
            timeout: Total request timeout in seconds
        """
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.stability = stability
        self.similarity_boost = similarity_boost
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client_factory = client_factory or AsyncHTTPClient

    @classmethod
    def from_config(cls, config: StudioConfig, **kwargs: Any) -> "ElevenLabsTTSEngine":
        return cls(
            api_key=config.elevenlabs_api_key,
            voice_id=config.elevenlabs_voice_id,
            model_id=config.elevenlabs_model_id,
            stability=config.voice_stability,
            similarity_boost=config.voice_similarity_boost,
            api_base=config.elevenlabs_api_base,
            timeout=config.http_timeout,
            **kwargs,
        )

    async def synthesize(self, text: str, voice: str | None = None, **kwargs: Any) -> bytes:
        """
        Synthesize speech from text using ElevenLabs.

        Args:
            text: Text to convert to speech
            voice: Voice id, defaults to the configured voice
            **kwargs: Additional options
                - model_id: override the configured model
                - stability / similarity_boost: override voice settings

        Returns:
            MP3 audio bytes
        """
        if not self.api_key:
            raise ProviderError("ElevenLabs API key not configured", retryable=False)

        voice_id = voice or self.voice_id
        url = f"{self.api_base}/v1/text-to-speech/{voice_id}"
        payload = {
            "text": text,
            "model_id": kwargs.get("model_id", self.model_id),
            "voice_settings": {
                "stability": kwargs.get("stability", self.stability),
                "similarity_boost": kwargs.get("similarity_boost", self.similarity_boost),
            },
        }
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }

        logger.info("Requesting speech from ElevenLabs (voice=%s, chars=%d)", voice_id, len(text))
        try:
            async with self._client_factory(timeout=self.timeout) as client:
                audio = await client.post_for_bytes(url, data=payload, headers=headers)
        except aiohttp.ClientResponseError as exc:
            raise ProviderError(f"ElevenLabs API error: {exc.status} - {exc.message}", status=exc.status) from exc
        except asyncio.TimeoutError as exc:
            raise ProviderError("ElevenLabs API request timed out") from exc
        except aiohttp.ClientError as exc:
            raise ProviderError(f"ElevenLabs API request failed: {exc}") from exc

        if not audio:
            raise ProviderError("ElevenLabs API returned an empty audio payload")
        return audio
