"""Tests for the FFmpeg recording transcoder."""

import subprocess
from pathlib import Path

import pytest

from narration_studio.services.audio_processing import AudioTranscoder
from narration_studio.services.audio_processing import service as transcoder_module
from narration_studio.shared.config import StudioConfig
from narration_studio.shared.errors import TranscodeError


@pytest.mark.asyncio
async def test_mp3_input_passes_through(monkeypatch) -> None:
    monkeypatch.setattr(transcoder_module.shutil, "which", lambda name: None)

    assert await AudioTranscoder().transcode(b"ID3data", source_format="MP3") == b"ID3data"


@pytest.mark.asyncio
async def test_missing_ffmpeg(monkeypatch) -> None:
    monkeypatch.setattr(transcoder_module.shutil, "which", lambda name: None)
    transcoder = AudioTranscoder()

    assert transcoder.ffmpeg_available() is False
    with pytest.raises(TranscodeError, match="not found"):
        await transcoder.transcode(b"webm-bytes")


@pytest.mark.asyncio
async def test_empty_recording_is_rejected() -> None:
    with pytest.raises(TranscodeError):
        await AudioTranscoder().transcode(b"", source_format="webm")


@pytest.mark.asyncio
async def test_successful_conversion_runs_ffmpeg(monkeypatch) -> None:
    monkeypatch.setattr(transcoder_module.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    captured = {}

    def fake_run(command, **kwargs):
        captured["command"] = command
        Path(command[-1]).write_bytes(b"ID3converted")
        return subprocess.CompletedProcess(command, 0, b"", b"")

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)

    result = await AudioTranscoder(quality=4).transcode(b"webm-bytes", source_format="webm")

    assert result == b"ID3converted"
    command = captured["command"]
    assert command[0] == "/usr/bin/ffmpeg"
    assert command[command.index("-codec:a") + 1] == "libmp3lame"
    assert command[command.index("-qscale:a") + 1] == "4"
    assert command[command.index("-i") + 1].endswith("recording.webm")


@pytest.mark.asyncio
async def test_ffmpeg_failure_reports_first_stderr_line(monkeypatch) -> None:
    monkeypatch.setattr(transcoder_module.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(
        transcoder_module.subprocess,
        "run",
        lambda command, **kwargs: subprocess.CompletedProcess(
            command, 1, b"", b"Invalid data found when processing input\nmore"
        ),
    )

    with pytest.raises(TranscodeError, match="Invalid data found"):
        await AudioTranscoder().transcode(b"garbage")


@pytest.mark.asyncio
async def test_ffmpeg_without_output(monkeypatch) -> None:
    monkeypatch.setattr(transcoder_module.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(
        transcoder_module.subprocess,
        "run",
        lambda command, **kwargs: subprocess.CompletedProcess(command, 0, b"", b""),
    )

    with pytest.raises(TranscodeError, match="no output"):
        await AudioTranscoder().transcode(b"webm-bytes")


def test_from_config() -> None:
    transcoder = AudioTranscoder.from_config(StudioConfig(ffmpeg_binary="ffmpeg6", mp3_quality=5))

    assert transcoder.ffmpeg_binary == "ffmpeg6"
    assert transcoder.quality == 5
