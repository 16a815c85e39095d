from abc import ABC, abstractmethod
from typing import Any


class TTSEngine(ABC):
    """Abstract base class for TTS engines."""

    @abstractmethod
    async def synthesize(self, text: str, voice: str | None = None, **kwargs: Any) -> bytes:
        """Synthesize speech from text. Returns encoded audio bytes.

        Implementations raise ProviderError on any provider or transport failure.
        """
