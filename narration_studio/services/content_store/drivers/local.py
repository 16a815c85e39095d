"""Filesystem content store used when running the studio against a local checkout."""

import asyncio
import hashlib
import os
import tempfile
from pathlib import Path

from narration_studio.shared.errors import (
    AlreadyExistsError,
    NotFoundError,
    StoreError,
    ValidationError,
    VersionConflictError,
)
from narration_studio.shared.logging_utils import setup_logging
from narration_studio.shared.models import StoredObject

from .base import ContentStore

logger = setup_logging("local-content-store")


class LocalContentStore(ContentStore):
    """Store objects as files below ``root``.

    Version tokens are SHA-1 digests of the file bytes. The version check and the
    atomic replace run under one lock, so writers inside this process are
    serialized; the store is not meant to be shared between processes.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()
        self._lock = asyncio.Lock()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.strip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            raise ValidationError(f"Path {path!r} escapes the store root")
        return target

    @staticmethod
    def compute_version(content: bytes) -> str:
        return hashlib.sha1(content).hexdigest()

    def _read_bytes(self, target: Path, path: str) -> bytes:
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"{path} not found", path=path) from exc
        except IsADirectoryError as exc:
            raise NotFoundError(f"{path} is a directory", path=path) from exc
        except OSError as exc:
            raise StoreError(f"Unable to read {path}: {exc}", path=path) from exc

    async def read(self, path: str) -> StoredObject:
        target = self._resolve(path)
        content = await asyncio.to_thread(self._read_bytes, target, path)
        return StoredObject(path=path, content=content, version=self.compute_version(content))

    def _replace(self, target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(handle, "wb") as stream:
                stream.write(content)
            os.replace(temp_name, target)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    async def write(
        self,
        path: str,
        content: bytes,
        expected_version: str | None = None,
        message: str | None = None,
    ) -> str:
        target = self._resolve(path)
        async with self._lock:
            try:
                current = await asyncio.to_thread(self._read_bytes, target, path)
            except NotFoundError:
                current = None

            if expected_version is None:
                if current is not None:
                    raise AlreadyExistsError(f"{path} already exists", path=path)
            elif current is None:
                raise VersionConflictError(f"{path} no longer exists", path=path)
            elif self.compute_version(current) != expected_version:
                raise VersionConflictError(f"{path} has changed since version {expected_version}", path=path)

            try:
                await asyncio.to_thread(self._replace, target, content)
            except OSError as exc:
                raise StoreError(f"Unable to write {path}: {exc}", path=path) from exc

        logger.debug("Wrote %s (%d bytes)%s", path, len(content), f": {message}" if message else "")
        return self.compute_version(content)

    async def list(self, directory: str) -> list[str]:
        target = self._resolve(directory)
        if not target.is_dir():
            raise NotFoundError(f"{directory} not found", path=directory)
        return sorted(entry.name for entry in target.iterdir() if not entry.name.startswith("."))
