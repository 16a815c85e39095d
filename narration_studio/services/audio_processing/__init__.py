from .service import AudioTranscoder

__all__ = ["AudioTranscoder"]
