"""
Pydantic models shared by the narration services.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import AudioOrigin, AudioStatus, ErrorKind, SkipReason, WorkflowStatus


class ManifestEntry(BaseModel):
    """Structured provenance record for one slide's audio."""

    model_config = ConfigDict(frozen=True)

    origin: AudioOrigin = AudioOrigin.GENERATED
    fingerprint: str | None = Field(None, description="Fingerprint of the narration the audio was produced from")
    recorded_at: str | None = Field(None, description="When the audio was produced (advisory)")
    edited_at: str | None = Field(None, description="When the narration text was last edited (advisory)")

    @property
    def is_custom(self) -> bool:
        return self.origin == AudioOrigin.CUSTOM

    def to_manifest_value(self) -> dict[str, Any]:
        """Serialize to the persisted JSON form."""
        value: dict[str, Any] = {"origin": self.origin.value}
        if self.is_custom:
            value["custom"] = True  # read by older tooling
        value["textHash"] = self.fingerprint
        if self.recorded_at:
            value["recordedAt"] = self.recorded_at
        if self.edited_at:
            value["textEditedAt"] = self.edited_at
        return value


class Manifest(BaseModel):
    """Index of slide audio keyed by canonical slide key.

    Instances are treated as immutable values: :meth:`upsert` returns a new
    manifest so a CAS retry can always start again from a fresh read.
    """

    entries: dict[str, ManifestEntry] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict, description="Other top-level keys of the document")
    version: str | None = Field(None, description="Store version token the manifest was read at")

    def get(self, key: str) -> ManifestEntry | None:
        return self.entries.get(key)

    def upsert(self, key: str, entry: ManifestEntry) -> "Manifest":
        entries = dict(self.entries)
        entries[key] = entry
        return Manifest(entries=entries, extra=dict(self.extra), version=self.version)

    def to_document(self) -> dict[str, Any]:
        document = dict(self.extra)
        document["generated"] = {key: entry.to_manifest_value() for key, entry in self.entries.items()}
        return document

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries


class StoredObject(BaseModel):
    """Content read from the store together with its version token."""

    path: str
    content: bytes
    version: str

    def text(self) -> str:
        return self.content.decode("utf-8")


class SlideNarration(BaseModel):
    """Narration attribute of one slide marker."""

    slide_index: int = Field(..., ge=1)
    narration: str = ""


class PatchResult(BaseModel):
    """Outcome of rewriting one slide's narration attribute."""

    document: str
    found: bool
    previous_narration: str | None = None
    slide_count: int = 0


class WorkflowResult(BaseModel):
    """Explicit outcome of a synchronization workflow."""

    workflow: str
    status: WorkflowStatus
    slide_key: str | None = None
    message: str = ""
    error_kind: ErrorKind | None = None
    retryable: bool = False
    warnings: list[str] = Field(default_factory=list)
    audio_path: str | None = None
    fingerprint: str | None = None
    manifest_updated: bool = False
    document_updated: bool = False
    skip_reason: SkipReason | None = None

    @property
    def ok(self) -> bool:
        return self.status != WorkflowStatus.FAILED


class BatchReport(BaseModel):
    """Summary of a batch generation run."""

    deck_ids: list[str] = Field(default_factory=list)
    generated: int = 0
    skipped: int = 0
    no_narration: int = 0
    failed: int = 0
    results: list[WorkflowResult] = Field(default_factory=list)

    def merge(self, other: "BatchReport") -> "BatchReport":
        return BatchReport(
            deck_ids=self.deck_ids + other.deck_ids,
            generated=self.generated + other.generated,
            skipped=self.skipped + other.skipped,
            no_narration=self.no_narration + other.no_narration,
            failed=self.failed + other.failed,
            results=self.results + other.results,
        )


class SlideStatusEntry(BaseModel):
    """Read-only view of one slide for editing and recording UIs."""

    slide_index: int
    narration: str
    audio_status: AudioStatus
    audio_path: str
    origin: AudioOrigin | None = None


class ModuleSummary(BaseModel):
    """Per-deck overview returned by ``list_modules``."""

    deck_id: str
    slide_count: int
    status_counts: dict[AudioStatus, int] = Field(default_factory=dict)


class SlideRequest(BaseModel):
    """Common addressing fields of the HTTP requests."""

    model_config = ConfigDict(populate_by_name=True)

    deck_id: str = Field(..., alias="module", description="Deck identifier, e.g. module-03")
    slide: int | str = Field(..., description="1-based slide number")


class SaveAudioRequest(SlideRequest):
    audio: str = Field(..., description="Base64 encoded recording")
    narration: str | None = Field(None, description="Narration text the recording was made from")
    format: str = Field("webm", description="Container format of the recording")


class SaveTextRequest(SlideRequest):
    narration: str


class GenerateAudioRequest(SlideRequest):
    text: str


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    success: bool = Field(default=True, description="Whether the operation was successful")
    message: str = Field(default="Operation completed successfully", description="Response message")
    data: dict[str, Any] | None = Field(None, description="Response data")


class ErrorResponse(BaseModel):
    """Standard API error response."""

    success: bool = Field(default=False, description="Always false for errors")
    message: str = Field(..., description="Error message")
    error_code: str | None = Field(None, description="Error code for programmatic handling")
    retryable: bool = False
