"""
Enums and constants used across the application.
"""

from enum import Enum


class AudioOrigin(str, Enum):
    """Provenance of a slide's audio track."""

    CUSTOM = "custom"
    GENERATED = "generated"


class AudioStatus(str, Enum):
    """Derived consistency verdict between a slide's audio and its narration."""

    NONE = "none"
    CURRENT = "current"
    OUTDATED = "outdated"
    UNVERIFIED = "unverified"


class ErrorKind(str, Enum):
    """Failure categories reported by the synchronization workflows."""

    VALIDATION = "validation_error"
    STORE = "store_error"
    NOT_FOUND = "not_found"
    VERSION_CONFLICT = "version_conflict"
    SLIDE_NOT_FOUND = "slide_not_found"
    TRANSCODE = "transcode_error"
    PROVIDER = "provider_error"
    CORRUPT_MANIFEST = "corrupt_manifest"


class WorkflowStatus(str, Enum):
    """Terminal state of a workflow run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Why audio generation did not call the provider."""

    UNCHANGED = "unchanged"
    PROTECTED = "protected"


class StoreBackend(str, Enum):
    """Available content store drivers."""

    GITHUB = "github"
    LOCAL = "local"
    MEMORY = "memory"
