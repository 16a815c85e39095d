"""
Exception hierarchy shared by the store, provider, transcoder and workflow layers.
"""

from .enums import ErrorKind


class StudioError(Exception):
    """Base class for every failure the narration core reports."""

    kind: ErrorKind = ErrorKind.STORE
    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable


class ValidationError(StudioError):
    """Malformed deck identifier, slide number or payload."""

    kind = ErrorKind.VALIDATION


class StoreError(StudioError):
    """Remote read or write failure. Transient by default."""

    kind = ErrorKind.STORE
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        status: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message, retryable=retryable)
        self.path = path
        self.status = status


class NotFoundError(StoreError):
    """The addressed object does not exist in the store."""

    kind = ErrorKind.NOT_FOUND
    retryable = False


class VersionConflictError(StoreError):
    """The expected version token no longer matches the stored object."""

    kind = ErrorKind.VERSION_CONFLICT
    retryable = True


class AlreadyExistsError(VersionConflictError):
    """A create-only write found an existing object."""


class SlideNotFoundError(StudioError):
    """The requested slide index exceeds the number of slide markers."""

    kind = ErrorKind.SLIDE_NOT_FOUND


class TranscodeError(StudioError):
    """Recorded audio could not be converted to the target codec."""

    kind = ErrorKind.TRANSCODE


class ProviderError(StudioError):
    """Speech synthesis failed."""

    kind = ErrorKind.PROVIDER

    def __init__(self, message: str, *, status: int | None = None, retryable: bool | None = None) -> None:
        if retryable is None:
            retryable = status is None or status == 429 or status >= 500
        super().__init__(message, retryable=retryable)
        self.status = status


class CorruptManifestError(StudioError):
    """The manifest document or one of its entries has an unknown shape."""

    kind = ErrorKind.CORRUPT_MANIFEST


__all__ = [
    "AlreadyExistsError",
    "CorruptManifestError",
    "NotFoundError",
    "ProviderError",
    "SlideNotFoundError",
    "StoreError",
    "StudioError",
    "TranscodeError",
    "ValidationError",
    "VersionConflictError",
]
