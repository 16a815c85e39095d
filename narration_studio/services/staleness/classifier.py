"""Audio/text consistency verdicts."""

from narration_studio.shared.enums import AudioStatus
from narration_studio.shared.file_utils import fingerprint
from narration_studio.shared.models import ManifestEntry


def classify(
    current_fingerprint: str | None,
    entry: ManifestEntry | None,
    artifact_exists: bool,
) -> AudioStatus:
    """Derive the audio status of a slide.

    The artifact's existence is checked against the store by the caller; the
    manifest may lag behind it and is never trusted for existence.
    """
    if not artifact_exists:
        return AudioStatus.NONE
    if entry is None:
        return AudioStatus.UNVERIFIED
    if current_fingerprint is None:
        return AudioStatus.CURRENT
    if entry.fingerprint is None:
        return AudioStatus.UNVERIFIED
    if entry.fingerprint == current_fingerprint:
        return AudioStatus.CURRENT
    return AudioStatus.OUTDATED


def classify_text(narration: str | None, entry: ManifestEntry | None, artifact_exists: bool) -> AudioStatus:
    return classify(fingerprint(narration), entry, artifact_exists)
