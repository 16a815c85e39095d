import asyncio
import hashlib
from dataclasses import dataclass

from narration_studio.shared.errors import AlreadyExistsError, NotFoundError, VersionConflictError
from narration_studio.shared.models import StoredObject

from .base import ContentStore


@dataclass(frozen=True)
class WriteRecord:
    path: str
    version: str
    message: str | None


class InMemoryContentStore(ContentStore):
    """Dictionary-backed store with the same CAS semantics as the remote drivers."""

    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        self._objects: dict[str, bytes] = {}
        self._lock = asyncio.Lock()
        self.writes: list[WriteRecord] = []
        for path, content in (objects or {}).items():
            self._objects[self._normalize(path)] = content

    @staticmethod
    def _normalize(path: str) -> str:
        return path.strip("/")

    @staticmethod
    def compute_version(content: bytes) -> str:
        return hashlib.sha1(content).hexdigest()

    def seed(self, path: str, content: bytes | str) -> str:
        """Place an object without recording a write."""
        data = content.encode("utf-8") if isinstance(content, str) else content
        self._objects[self._normalize(path)] = data
        return self.compute_version(data)

    def get_bytes(self, path: str) -> bytes | None:
        return self._objects.get(self._normalize(path))

    def writes_to(self, path: str) -> list[WriteRecord]:
        key = self._normalize(path)
        return [record for record in self.writes if record.path == key]

    async def read(self, path: str) -> StoredObject:
        key = self._normalize(path)
        content = self._objects.get(key)
        if content is None:
            raise NotFoundError(f"{key} not found", path=key)
        return StoredObject(path=key, content=content, version=self.compute_version(content))

    async def write(
        self,
        path: str,
        content: bytes,
        expected_version: str | None = None,
        message: str | None = None,
    ) -> str:
        key = self._normalize(path)
        async with self._lock:
            current = self._objects.get(key)
            if expected_version is None:
                if current is not None:
                    raise AlreadyExistsError(f"{key} already exists", path=key)
            elif current is None:
                raise VersionConflictError(f"{key} no longer exists", path=key)
            elif self.compute_version(current) != expected_version:
                raise VersionConflictError(f"{key} has changed since version {expected_version}", path=key)

            self._objects[key] = bytes(content)
            version = self.compute_version(content)
            self.writes.append(WriteRecord(key, version, message))
            return version

    async def list(self, directory: str) -> list[str]:
        prefix = self._normalize(directory) + "/"
        names = {
            key[len(prefix):].split("/", 1)[0]
            for key in self._objects
            if key.startswith(prefix)
        }
        if not names:
            raise NotFoundError(f"{directory} not found", path=directory)
        return sorted(names)
