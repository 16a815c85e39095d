"""Narration/audio synchronization workflows.

Each workflow reads the current document and manifest state from the content
store, computes the new state with the pure patcher and classifier, and writes
back through version-checked writes. Content is always written before the
manifest, so a failure in between leaves audio whose status reads
``unverified`` rather than a manifest entry pointing at nothing.

Failures are returned as :class:`WorkflowResult` values; nothing here retries a
write automatically.
"""

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from narration_studio.services.audio_processing import AudioTranscoder
from narration_studio.services.content_store import ContentStore
from narration_studio.services.documents import extract_narrations, patch_narration
from narration_studio.services.manifest import ManifestRepository
from narration_studio.services.staleness import classify
from narration_studio.services.tts_service import ElevenLabsTTSEngine, TTSEngine
from narration_studio.shared.config import StudioConfig
from narration_studio.shared.enums import AudioOrigin, SkipReason, WorkflowStatus
from narration_studio.shared.errors import (
    NotFoundError,
    SlideNotFoundError,
    StoreError,
    StudioError,
    ValidationError,
)
from narration_studio.shared.file_utils import (
    deck_id_from_file_name,
    fingerprint,
    slide_file_name,
    slide_key,
    validate_deck_id,
    validate_slide_index,
)
from narration_studio.shared.logging_utils import setup_logging
from narration_studio.shared.models import (
    BatchReport,
    Manifest,
    ManifestEntry,
    ModuleSummary,
    SlideStatusEntry,
    StoredObject,
    WorkflowResult,
)

logger = setup_logging("narration-sync")

SAVE_RECORDING = "save_recording"
SAVE_NARRATION_TEXT = "save_narration_text"
GENERATE_AUDIO = "generate_audio"


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class NarrationSyncOrchestrator:
    """Compose store, manifest, patcher, transcoder and speech provider."""

    def __init__(
        self,
        config: StudioConfig,
        store: ContentStore,
        synthesizer: TTSEngine | None = None,
        transcoder: AudioTranscoder | None = None,
        clock: Callable[[], str] | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.manifests = ManifestRepository(store, config.manifest_path)
        self._synthesizer = synthesizer
        self._transcoder = transcoder
        self._clock = clock or utc_timestamp
        self._sleep = sleep or asyncio.sleep
        self.provider_calls = 0

    @property
    def synthesizer(self) -> TTSEngine:
        """Lazy load the speech provider."""
        if self._synthesizer is None:
            self._synthesizer = ElevenLabsTTSEngine.from_config(self.config)
        return self._synthesizer

    @synthesizer.setter
    def synthesizer(self, engine: TTSEngine) -> None:
        self._synthesizer = engine

    @property
    def transcoder(self) -> AudioTranscoder:
        """Lazy load the audio transcoder."""
        if self._transcoder is None:
            self._transcoder = AudioTranscoder.from_config(self.config)
        return self._transcoder

    @transcoder.setter
    def transcoder(self, transcoder: AudioTranscoder) -> None:
        self._transcoder = transcoder

    # ------------------------------------------------------------------ helpers

    def _slide_key(self, deck_id: str, slide_index: int) -> str:
        return slide_key(deck_id, slide_index, self.config.audio_extension)

    def _failed(self, workflow: str, key: str | None, error: StudioError) -> WorkflowResult:
        logger.error("%s failed for %s: %s", workflow, key or "<invalid slide>", error.message)
        return WorkflowResult(
            workflow=workflow,
            status=WorkflowStatus.FAILED,
            slide_key=key,
            message=error.message,
            error_kind=error.kind,
            retryable=error.retryable,
        )

    async def _read_document(self, deck_id: str) -> tuple[StoredObject, str]:
        stored = await self.store.read(self.config.module_path(deck_id))
        try:
            return stored, stored.text()
        except UnicodeDecodeError as exc:
            raise StoreError(f"{stored.path} is not valid UTF-8", path=stored.path, retryable=False) from exc

    # ---------------------------------------------------------------- workflows

    async def save_recording(
        self,
        deck_id: str,
        slide_index: int | str,
        audio: bytes,
        narration: str | None = None,
        source_format: str = "webm",
    ) -> WorkflowResult:
        """Store a human recording and mark it as protected custom audio."""
        try:
            deck_id = validate_deck_id(deck_id)
            slide_index = validate_slide_index(slide_index)
            if not audio:
                raise ValidationError("Missing required field: audio")
            if narration is not None and not isinstance(narration, str):
                raise ValidationError("Narration must be a string")
        except ValidationError as exc:
            return self._failed(SAVE_RECORDING, None, exc)

        key = self._slide_key(deck_id, slide_index)
        audio_path = self.config.audio_path(key)
        logger.info("Saving recording for %s", key)

        try:
            encoded = await self.transcoder.transcode(audio, source_format)
        except StudioError as exc:
            return self._failed(SAVE_RECORDING, key, exc)

        try:
            previous_version = await self.store.version_of(audio_path)
            await self.store.write(
                audio_path,
                encoded,
                expected_version=previous_version,
                message=f"Record {deck_id} slide {slide_index}",
            )
        except StudioError as exc:
            return self._failed(SAVE_RECORDING, key, exc)

        text_fingerprint = fingerprint(narration)
        entry = ManifestEntry(origin=AudioOrigin.CUSTOM, fingerprint=text_fingerprint, recorded_at=self._clock())
        try:
            manifest = await self.manifests.load()
            await self.manifests.save(
                manifest.upsert(key, entry),
                message=f"Update manifest: {deck_id} slide {slide_index}",
            )
        except StudioError as exc:
            warning = (
                f"Audio saved to {audio_path} but the manifest update failed ({exc.message}); "
                "its status reads unverified until the manifest is reconciled."
            )
            logger.warning("%s partial for %s: %s", SAVE_RECORDING, key, warning)
            return WorkflowResult(
                workflow=SAVE_RECORDING,
                status=WorkflowStatus.PARTIAL,
                slide_key=key,
                message="Audio saved; manifest not updated",
                error_kind=exc.kind,
                retryable=exc.retryable,
                warnings=[warning],
                audio_path=audio_path,
                fingerprint=text_fingerprint,
            )

        logger.info("Saved custom recording %s", key)
        return WorkflowResult(
            workflow=SAVE_RECORDING,
            status=WorkflowStatus.SUCCESS,
            slide_key=key,
            message="Audio saved successfully",
            audio_path=audio_path,
            fingerprint=text_fingerprint,
            manifest_updated=True,
        )

    async def save_narration_text(self, deck_id: str, slide_index: int | str, text: str) -> WorkflowResult:
        """Rewrite a slide's narration in the deck document.

        The manifest fingerprint of existing audio is left alone so the edit shows
        up as ``outdated``; only the advisory ``edited_at`` stamp changes.
        """
        try:
            deck_id = validate_deck_id(deck_id)
            slide_index = validate_slide_index(slide_index)
            if not isinstance(text, str):
                raise ValidationError("Missing narration text")
        except ValidationError as exc:
            return self._failed(SAVE_NARRATION_TEXT, None, exc)

        key = self._slide_key(deck_id, slide_index)
        document_path = self.config.module_path(deck_id)
        logger.info("Saving narration text for %s", key)

        try:
            stored, document = await self._read_document(deck_id)
        except StudioError as exc:
            return self._failed(SAVE_NARRATION_TEXT, key, exc)

        patched = patch_narration(document, slide_index, text)
        if not patched.found:
            error = SlideNotFoundError(
                f"Slide {slide_index} not found in {deck_id}.html (found {patched.slide_count} slides)"
            )
            return self._failed(SAVE_NARRATION_TEXT, key, error)

        text_fingerprint = fingerprint(text)
        if patched.document == document:
            logger.info("Narration for %s unchanged; nothing to write", key)
            return WorkflowResult(
                workflow=SAVE_NARRATION_TEXT,
                status=WorkflowStatus.SUCCESS,
                slide_key=key,
                message="Narration unchanged",
                fingerprint=text_fingerprint,
            )

        try:
            await self.store.write(
                document_path,
                patched.document.encode("utf-8"),
                expected_version=stored.version,
                message=f"Edit narration: {deck_id} slide {slide_index}",
            )
        except StudioError as exc:
            return self._failed(SAVE_NARRATION_TEXT, key, exc)

        manifest_updated, warnings = await self._stamp_text_edit(key, deck_id, slide_index)
        return WorkflowResult(
            workflow=SAVE_NARRATION_TEXT,
            status=WorkflowStatus.PARTIAL if warnings else WorkflowStatus.SUCCESS,
            slide_key=key,
            message=f"Narration updated for {deck_id} slide {slide_index}",
            warnings=warnings,
            fingerprint=text_fingerprint,
            manifest_updated=manifest_updated,
            document_updated=True,
        )

    async def _stamp_text_edit(self, key: str, deck_id: str, slide_index: int) -> tuple[bool, list[str]]:
        try:
            manifest = await self.manifests.load()
        except StudioError as exc:
            warning = f"Manifest update skipped: {exc.message}"
            logger.warning("%s for %s: %s", SAVE_NARRATION_TEXT, key, warning)
            return False, [warning]

        entry = manifest.get(key)
        if entry is None:
            return False, []

        stamped = entry.model_copy(update={"edited_at": self._clock()})
        try:
            await self.manifests.save(
                manifest.upsert(key, stamped),
                message=f"Update manifest after text edit: {deck_id} slide {slide_index}",
            )
        except StudioError as exc:
            warning = f"Narration saved but the manifest edit stamp failed: {exc.message}"
            logger.warning("%s for %s: %s", SAVE_NARRATION_TEXT, key, warning)
            return False, [warning]
        return True, []

    async def generate_audio(
        self,
        deck_id: str,
        slide_index: int | str,
        text: str,
        voice: str | None = None,
    ) -> WorkflowResult:
        """Synthesize audio for one slide unless it is protected or up to date."""
        try:
            deck_id = validate_deck_id(deck_id)
            slide_index = validate_slide_index(slide_index)
            if not isinstance(text, str) or not text.strip():
                raise ValidationError("Missing text to generate audio from")
        except ValidationError as exc:
            return self._failed(GENERATE_AUDIO, None, exc)

        key = self._slide_key(deck_id, slide_index)
        audio_path = self.config.audio_path(key)
        text_fingerprint = fingerprint(text)

        try:
            manifest = await self.manifests.load()
        except StudioError as exc:
            return self._failed(GENERATE_AUDIO, key, exc)

        entry = manifest.get(key)
        if entry is not None and entry.is_custom:
            logger.info("Skipping %s: custom recording", key)
            return self._skipped(key, SkipReason.PROTECTED, "Custom recording - not regenerated", audio_path)

        if entry is not None and entry.fingerprint == text_fingerprint:
            try:
                exists = await self.store.exists(audio_path)
            except StudioError as exc:
                return self._failed(GENERATE_AUDIO, key, exc)
            if exists:
                logger.info("Skipping %s: unchanged", key)
                return self._skipped(key, SkipReason.UNCHANGED, "Audio is up to date", audio_path)

        logger.info("Generating audio for %s", key)
        try:
            self.provider_calls += 1
            audio = await self.synthesizer.synthesize(text, voice)
            await self.store.overwrite(audio_path, audio, message=f"Generate {deck_id} slide {slide_index}")
        except StudioError as exc:
            return self._failed(GENERATE_AUDIO, key, exc)

        return await self._record_generated(manifest, key, audio_path, text_fingerprint)

    def _skipped(self, key: str, reason: SkipReason, message: str, audio_path: str) -> WorkflowResult:
        return WorkflowResult(
            workflow=GENERATE_AUDIO,
            status=WorkflowStatus.SKIPPED,
            slide_key=key,
            message=message,
            skip_reason=reason,
            audio_path=audio_path,
        )

    async def _record_generated(
        self, manifest: Manifest, key: str, audio_path: str, text_fingerprint: str | None
    ) -> WorkflowResult:
        entry = ManifestEntry(origin=AudioOrigin.GENERATED, fingerprint=text_fingerprint, recorded_at=self._clock())
        try:
            await self.manifests.save(manifest.upsert(key, entry), message=f"Update manifest: {key}")
        except StudioError as exc:
            warning = (
                f"Audio generated at {audio_path} but the manifest update failed ({exc.message}); "
                "its status reads unverified until the manifest is reconciled."
            )
            logger.warning("%s partial for %s: %s", GENERATE_AUDIO, key, warning)
            return WorkflowResult(
                workflow=GENERATE_AUDIO,
                status=WorkflowStatus.PARTIAL,
                slide_key=key,
                message="Audio generated; manifest not updated",
                error_kind=exc.kind,
                retryable=exc.retryable,
                warnings=[warning],
                audio_path=audio_path,
                fingerprint=text_fingerprint,
            )

        logger.info("Generated audio %s", key)
        return WorkflowResult(
            workflow=GENERATE_AUDIO,
            status=WorkflowStatus.SUCCESS,
            slide_key=key,
            message="Audio generated successfully",
            audio_path=audio_path,
            fingerprint=text_fingerprint,
            manifest_updated=True,
        )

    # -------------------------------------------------------------------- batch

    async def generate_deck(self, deck_id: str, slides: Iterable[int] | None = None) -> BatchReport:
        """Generate audio for every narrated slide of a deck, one at a time.

        Provider failures are recorded and the batch moves on. The configured
        delay is awaited after every slide that reached the provider.
        """
        report = BatchReport(deck_ids=[deck_id])
        try:
            deck_id = validate_deck_id(deck_id)
            _, document = await self._read_document(deck_id)
        except StudioError as exc:
            report.failed += 1
            report.results.append(self._failed(GENERATE_AUDIO, None, exc))
            return report

        selected = set(slides) if slides is not None else None
        logger.info("Processing %s...", deck_id)

        for item in extract_narrations(document):
            if selected is not None and item.slide_index not in selected:
                continue
            key = self._slide_key(deck_id, item.slide_index)
            if not item.narration:
                logger.debug("Skipping %s: no narration", key)
                report.no_narration += 1
                continue

            calls_before = self.provider_calls
            result = await self.generate_audio(deck_id, item.slide_index, item.narration)
            report.results.append(result)
            if result.status == WorkflowStatus.SKIPPED:
                report.skipped += 1
                continue

            if result.status == WorkflowStatus.FAILED:
                report.failed += 1
            else:
                report.generated += 1
            if self.provider_calls > calls_before:
                await self._sleep(self.config.tts_request_delay)

        logger.info(
            "%s done: %d generated, %d skipped, %d without narration, %d failed",
            deck_id,
            report.generated,
            report.skipped,
            report.no_narration,
            report.failed,
        )
        return report

    async def generate_all(self) -> BatchReport:
        """Run :meth:`generate_deck` for every deck in the store."""
        report = BatchReport()
        for deck_id in await self.list_deck_ids():
            report = report.merge(await self.generate_deck(deck_id))
        return report

    # ------------------------------------------------------------------ queries

    async def list_deck_ids(self) -> list[str]:
        try:
            names = await self.store.list(self.config.modules_dir)
        except NotFoundError:
            return []
        return sorted(deck_id for deck_id in map(deck_id_from_file_name, names) if deck_id)

    async def list_slides(self, deck_id: str) -> list[SlideStatusEntry]:
        """Narration and derived audio status of every slide in a deck.

        Audio existence comes from a listing of the deck's audio directory, not
        from the manifest. Raises :class:`StudioError` subclasses on failure.
        """
        deck_id = validate_deck_id(deck_id)
        _, document = await self._read_document(deck_id)
        manifest = await self.manifests.load()
        try:
            audio_files = set(await self.store.list(self.config.deck_audio_dir(deck_id)))
        except NotFoundError:
            audio_files = set()

        slides = []
        for item in extract_narrations(document):
            key = self._slide_key(deck_id, item.slide_index)
            entry = manifest.get(key)
            exists = slide_file_name(item.slide_index, self.config.audio_extension) in audio_files
            slides.append(
                SlideStatusEntry(
                    slide_index=item.slide_index,
                    narration=item.narration,
                    audio_status=classify(fingerprint(item.narration), entry, exists),
                    audio_path=self.config.audio_path(key),
                    origin=entry.origin if entry else None,
                )
            )
        return slides

    async def list_modules(self) -> list[ModuleSummary]:
        summaries = []
        for deck_id in await self.list_deck_ids():
            slides = await self.list_slides(deck_id)
            counts = Counter(slide.audio_status for slide in slides)
            summaries.append(ModuleSummary(deck_id=deck_id, slide_count=len(slides), status_counts=dict(counts)))
        return summaries
