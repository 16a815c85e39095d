import sys
from pathlib import Path
from typing import Any

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from narration_studio.services.audio_processing import AudioTranscoder
from narration_studio.services.content_store import InMemoryContentStore
from narration_studio.services.narration.orchestrator import NarrationSyncOrchestrator
from narration_studio.services.tts_service import TTSEngine
from narration_studio.shared.config import StudioConfig
from narration_studio.shared.enums import StoreBackend
from narration_studio.shared.errors import ProviderError, TranscodeError

SAMPLE_DECK = """<!DOCTYPE html>
<html lang="en">
<head><title>Module 3: Forms</title></head>
<body>
<main class="presentation">
    <section class="slide title-slide" id="slide-1" data-narration="Welcome to module three.">
        <h1>Forms &amp; Validation</h1>
    </section>
    <section class="slide" id="slide-2" data-narration="">
        <p>Inputs</p>
    </section>
    <section class="speaker-notes">Not a slide</section>
    <section id="slide-3" class="slide two-column" data-narration='Single "quoted" narration' aria-label="Third">
        <p>Layout</p>
    </section>
    <section class="slide" id="slide-4" data-narration="Tom &amp; Jerry &lt;3">
        <p>Escapes</p>
    </section>
    <section class="slide" id="slide-5">
        <p>Summary</p>
    </section>
</main>
</body>
</html>
"""


class FakeSynthesizer(TTSEngine):
    """Speech provider double that records every call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail_on: set[str] = set()

    async def synthesize(self, text: str, voice: str | None = None, **kwargs: Any) -> bytes:
        self.calls.append({"text": text, "voice": voice})
        if text in self.fail_on:
            raise ProviderError("ElevenLabs API error: 500 - boom", status=500)
        return b"ID3generated:" + text.encode("utf-8")


class FakeTranscoder(AudioTranscoder):
    """Transcoder double that never shells out to FFmpeg."""

    def __init__(self) -> None:
        super().__init__()
        self.available = True
        self.calls: list[str] = []

    def ffmpeg_available(self) -> bool:
        return self.available

    async def transcode(self, audio: bytes, source_format: str = "webm") -> bytes:
        self.calls.append(source_format)
        if source_format == "mp3":
            return audio
        if not self.available:
            raise TranscodeError("ffmpeg not found. Install FFmpeg to save recordings.")
        return b"ID3recorded:" + audio


@pytest.fixture
def sample_deck() -> str:
    return SAMPLE_DECK


@pytest.fixture
def studio_config() -> StudioConfig:
    return StudioConfig(
        store_backend=StoreBackend.MEMORY,
        elevenlabs_api_key="test-key",
        tts_request_delay=0.5,
    )


@pytest.fixture
def store(sample_deck: str) -> InMemoryContentStore:
    content_store = InMemoryContentStore()
    content_store.seed("modules/module-03.html", sample_deck)
    return content_store


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def orchestrator(
    studio_config: StudioConfig,
    store: InMemoryContentStore,
    synthesizer: FakeSynthesizer,
    transcoder: FakeTranscoder,
    sleeps: list[float],
) -> NarrationSyncOrchestrator:
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return NarrationSyncOrchestrator(
        studio_config,
        store,
        synthesizer=synthesizer,
        transcoder=transcoder,
        clock=lambda: "2026-01-01T00:00:00.000Z",
        sleep=record_sleep,
    )
