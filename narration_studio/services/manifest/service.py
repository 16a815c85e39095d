"""Manifest loading, normalization and persistence.

The manifest is a single JSON document, ``{"generated": {<slide key>: <entry>}}``.
Entries exist in two shapes:

* legacy: a bare fingerprint string, written by the first generation tooling
  (implies generated audio with no timestamps);
* structured: an object with ``origin``/``custom``, ``textHash`` (or ``hash``),
  ``recordedAt`` and ``textEditedAt``.

Both are normalized to :class:`ManifestEntry` when the document is parsed, and
every write uses the structured shape.
"""

import json
from typing import Any

from narration_studio.services.content_store import ContentStore
from narration_studio.shared.enums import AudioOrigin
from narration_studio.shared.errors import CorruptManifestError, NotFoundError
from narration_studio.shared.logging_utils import setup_logging
from narration_studio.shared.models import Manifest, ManifestEntry

logger = setup_logging("manifest-service")

ENTRIES_KEY = "generated"
_FINGERPRINT_KEYS = ("textHash", "hash")
_RECORDED_KEYS = ("recordedAt", "generatedAt")
_EDITED_KEYS = ("textEditedAt", "editedAt")


def _first_value(raw: dict[str, Any], keys: tuple[str, ...], key: str) -> str | None:
    for name in keys:
        value = raw.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise CorruptManifestError(f"Manifest entry {key!r}: field {name!r} must be a string")
        return value
    return None


def normalize_entry(raw: Any, key: str = "<entry>") -> ManifestEntry:
    """Convert a persisted entry of either shape into a :class:`ManifestEntry`."""
    if isinstance(raw, str):
        return ManifestEntry(origin=AudioOrigin.GENERATED, fingerprint=raw or None)

    if not isinstance(raw, dict):
        raise CorruptManifestError(f"Manifest entry {key!r} has unsupported type {type(raw).__name__}")

    origin_value = raw.get("origin")
    if origin_value is None:
        custom = raw.get("custom", False)
        if not isinstance(custom, bool):
            raise CorruptManifestError(f"Manifest entry {key!r}: field 'custom' must be a boolean")
        origin = AudioOrigin.CUSTOM if custom else AudioOrigin.GENERATED
    else:
        try:
            origin = AudioOrigin(origin_value)
        except ValueError as exc:
            raise CorruptManifestError(f"Manifest entry {key!r} has unknown origin {origin_value!r}") from exc

    return ManifestEntry(
        origin=origin,
        fingerprint=_first_value(raw, _FINGERPRINT_KEYS, key),
        recorded_at=_first_value(raw, _RECORDED_KEYS, key),
        edited_at=_first_value(raw, _EDITED_KEYS, key),
    )


def parse_manifest(content: bytes | str, version: str | None = None) -> Manifest:
    """Parse a manifest document, normalizing every entry."""
    try:
        document = json.loads(content)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CorruptManifestError(f"Manifest is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise CorruptManifestError("Manifest document must be a JSON object")

    raw_entries = document.pop(ENTRIES_KEY, None)
    if raw_entries is None:
        raw_entries = {}
    if not isinstance(raw_entries, dict):
        raise CorruptManifestError(f"Manifest field {ENTRIES_KEY!r} must be an object")

    entries = {key: normalize_entry(raw, key) for key, raw in raw_entries.items()}
    return Manifest(entries=entries, extra=document, version=version)


def serialize_manifest(manifest: Manifest) -> bytes:
    return json.dumps(manifest.to_document(), indent=2).encode("utf-8")


def upsert(manifest: Manifest, key: str, entry: ManifestEntry) -> Manifest:
    """Return a copy of ``manifest`` with ``entry`` stored under ``key``."""
    return manifest.upsert(key, entry)


def get(manifest: Manifest, key: str) -> ManifestEntry | None:
    return manifest.get(key)


class ManifestRepository:
    """Load and store the manifest through a :class:`ContentStore`."""

    def __init__(self, store: ContentStore, path: str = "audio/manifest.json") -> None:
        self.store = store
        self.path = path

    async def load(self) -> Manifest:
        """Read the manifest; a missing document is an empty manifest."""
        try:
            stored = await self.store.read(self.path)
        except NotFoundError:
            logger.info("No manifest at %s; starting with an empty one", self.path)
            return Manifest()
        return parse_manifest(stored.content, version=stored.version)

    async def save(self, manifest: Manifest, message: str | None = None) -> Manifest:
        """Write the whole manifest, compare-and-swap on the version it was read at."""
        version = await self.store.write(
            self.path,
            serialize_manifest(manifest),
            expected_version=manifest.version,
            message=message or "Update manifest",
        )
        return manifest.model_copy(update={"version": version})
