"""Conversion of browser recordings to the deck's audio codec."""

from __future__ import annotations

import asyncio
import shutil
import subprocess
import tempfile
from pathlib import Path

from narration_studio.shared.config import StudioConfig
from narration_studio.shared.errors import TranscodeError
from narration_studio.shared.logging_utils import setup_logging

logger = setup_logging("audio-transcoder")


class AudioTranscoder:
    """Transcode recorded audio to MP3 with FFmpeg at a fixed VBR quality."""

    target_format = "mp3"

    def __init__(self, ffmpeg_binary: str = "ffmpeg", quality: int = 2) -> None:
        self.ffmpeg_binary = ffmpeg_binary
        self.quality = quality

    @classmethod
    def from_config(cls, config: StudioConfig) -> "AudioTranscoder":
        return cls(ffmpeg_binary=config.ffmpeg_binary, quality=config.mp3_quality)

    def ffmpeg_path(self) -> str | None:
        return shutil.which(self.ffmpeg_binary)

    def ffmpeg_available(self) -> bool:
        """Return ``True`` when the FFmpeg binary can be found."""
        return self.ffmpeg_path() is not None

    async def transcode(self, audio: bytes, source_format: str = "webm") -> bytes:
        """Return ``audio`` encoded as MP3.

        Input already in the target container is returned unchanged.
        """
        source_format = source_format.lower().lstrip(".")
        if source_format == self.target_format:
            logger.debug("Source is already %s; skipping conversion", self.target_format)
            return audio
        if not audio:
            raise TranscodeError("No audio data received")

        ffmpeg_path = self.ffmpeg_path()
        if ffmpeg_path is None:
            raise TranscodeError(f"{self.ffmpeg_binary} not found. Install FFmpeg to save recordings.")

        return await asyncio.to_thread(self._transcode_sync, ffmpeg_path, audio, source_format)

    def _transcode_sync(self, ffmpeg_path: str, audio: bytes, source_format: str) -> bytes:
        with tempfile.TemporaryDirectory(prefix="narration-") as workdir:
            source = Path(workdir) / f"recording.{source_format}"
            target = Path(workdir) / f"recording.{self.target_format}"
            source.write_bytes(audio)

            command = [
                ffmpeg_path,
                "-hide_banner",
                "-loglevel",
                "error",
                "-y",
                "-i",
                str(source),
                "-codec:a",
                "libmp3lame",
                "-qscale:a",
                str(self.quality),
                str(target),
            ]
            logger.debug("Executing FFmpeg command: %s", " ".join(command))
            try:
                completed = subprocess.run(command, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False)
            except OSError as error:
                raise TranscodeError(f"Unable to run FFmpeg: {error}") from error

            if completed.returncode != 0:
                stderr = completed.stderr.decode("utf-8", errors="ignore").strip()
                details = (stderr or "FFmpeg exited with a non-zero status.").splitlines()
                raise TranscodeError(f"Unable to convert audio to MP3: {details[0]}")

            if not target.exists() or target.stat().st_size == 0:
                raise TranscodeError("FFmpeg produced no output")

            logger.debug("FFmpeg conversion succeeded (%d -> %d bytes)", len(audio), target.stat().st_size)
            return target.read_bytes()
