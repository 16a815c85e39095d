"""Speech synthesis providers."""

from .drivers import ElevenLabsTTSEngine, TTSEngine

__all__ = ["ElevenLabsTTSEngine", "TTSEngine"]
