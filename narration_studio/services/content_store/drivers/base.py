from abc import ABC, abstractmethod

from narration_studio.shared.errors import NotFoundError
from narration_studio.shared.models import StoredObject


class ContentStore(ABC):
    """Abstract path-addressed store whose objects carry a version token.

    ``write`` is a compare-and-swap: with ``expected_version`` it only succeeds when
    the stored object still has that version, and without it it only creates a new
    object. A rejected write leaves the stored object untouched.
    """

    @abstractmethod
    async def read(self, path: str) -> StoredObject:
        """Return content and version of ``path``; raise NotFoundError if absent."""

    @abstractmethod
    async def write(
        self,
        path: str,
        content: bytes,
        expected_version: str | None = None,
        message: str | None = None,
    ) -> str:
        """Store ``content`` at ``path`` and return the new version token."""

    @abstractmethod
    async def list(self, directory: str) -> list[str]:
        """Return the names of the objects directly inside ``directory``."""

    async def version_of(self, path: str) -> str | None:
        """Current version token of ``path``, ``None`` when it does not exist."""
        try:
            stored = await self.read(path)
        except NotFoundError:
            return None
        return stored.version

    async def exists(self, path: str) -> bool:
        return await self.version_of(path) is not None

    async def overwrite(self, path: str, content: bytes, message: str | None = None) -> str:
        """Write ``content`` regardless of the current version.

        Only for objects owned by the caller; a concurrent writer between the
        version lookup and the write still surfaces as a version conflict.
        """
        version = await self.version_of(path)
        return await self.write(path, content, expected_version=version, message=message)
