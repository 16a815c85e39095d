"""Content store backed by the GitHub REST contents API.

Every object is a file on one branch of a repository. The file's blob ``sha`` is
the version token: GitHub rejects a ``PUT`` whose ``sha`` is stale, and a ``PUT``
without ``sha`` on an existing file, which gives compare-and-swap semantics per
file. Each write is a separate commit; there is no multi-file transaction.
"""

import asyncio
import base64
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import aiohttp

from narration_studio.shared.config import StudioConfig
from narration_studio.shared.errors import (
    AlreadyExistsError,
    NotFoundError,
    StoreError,
    VersionConflictError,
)
from narration_studio.shared.http_client import AsyncHTTPClient
from narration_studio.shared.logging_utils import setup_logging
from narration_studio.shared.models import StoredObject

from .base import ContentStore

logger = setup_logging("github-content-store")


class GitHubContentStore(ContentStore):
    """Read and write repository files through ``/repos/{repo}/contents``."""

    def __init__(
        self,
        token: str,
        repo: str,
        branch: str = "main",
        api_base: str = "https://api.github.com",
        timeout: int = 30,
        client_factory: Callable[..., AsyncHTTPClient] | None = None,
    ) -> None:
        if not token or not repo:
            raise ValueError("GitHub content store requires both a token and a repository")
        self.repo = repo
        self.branch = branch
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3+json",
        }
        self._client_factory = client_factory or AsyncHTTPClient

    @classmethod
    def from_config(cls, config: StudioConfig, **kwargs: Any) -> "GitHubContentStore":
        return cls(
            token=config.github_token or "",
            repo=config.github_repo or "",
            branch=config.github_branch,
            api_base=config.github_api_base,
            timeout=config.http_timeout,
            **kwargs,
        )

    def _client(self) -> AsyncHTTPClient:
        return self._client_factory(timeout=self.timeout, headers=self.headers)

    def _contents_url(self, path: str) -> str:
        return f"{self.api_base}/repos/{self.repo}/contents/{quote(path.strip('/'))}"

    def _blob_url(self, sha: str) -> str:
        return f"{self.api_base}/repos/{self.repo}/git/blobs/{sha}"

    @staticmethod
    def _map_error(exc: Exception, path: str, expected_version: str | None = None) -> StoreError:
        if isinstance(exc, aiohttp.ClientResponseError):
            status = exc.status
            detail = f"GitHub {status}: {exc.message}"
            if status == 404:
                return NotFoundError(f"{path} not found ({detail})", path=path, status=status)
            if status == 422 and expected_version is None:
                return AlreadyExistsError(f"{path} already exists ({detail})", path=path, status=status)
            if status in (409, 422):
                return VersionConflictError(
                    f"{path} changed since version {expected_version} ({detail})", path=path, status=status
                )
            retryable = status == 429 or status >= 500
            return StoreError(f"{path}: {detail}", path=path, status=status, retryable=retryable)
        if isinstance(exc, asyncio.TimeoutError):
            return StoreError(f"{path}: request to GitHub timed out", path=path)
        return StoreError(f"{path}: {exc}", path=path)

    async def read(self, path: str) -> StoredObject:
        try:
            async with self._client() as client:
                payload = await client.get(self._contents_url(path), params={"ref": self.branch})
                if isinstance(payload, list):
                    raise NotFoundError(f"{path} is a directory", path=path)

                sha = payload["sha"]
                if payload.get("encoding") == "base64":
                    encoded = payload.get("content") or ""
                else:
                    # Files above the inline size limit come back without content.
                    blob = await client.get(self._blob_url(sha))
                    encoded = blob.get("content") or ""
        except StoreError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise self._map_error(exc, path) from exc

        return StoredObject(path=path, content=base64.b64decode(encoded), version=sha)

    async def write(
        self,
        path: str,
        content: bytes,
        expected_version: str | None = None,
        message: str | None = None,
    ) -> str:
        body: dict[str, Any] = {
            "message": message or f"Update {path}",
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if expected_version is not None:
            body["sha"] = expected_version

        try:
            async with self._client() as client:
                payload = await client.put(self._contents_url(path), data=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise self._map_error(exc, path, expected_version) from exc

        version = payload["content"]["sha"]
        logger.info("Committed %s to %s@%s (sha %s)", path, self.repo, self.branch, version)
        return version

    async def list(self, directory: str) -> list[str]:
        try:
            async with self._client() as client:
                payload = await client.get(self._contents_url(directory), params={"ref": self.branch})
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise self._map_error(exc, directory) from exc

        if not isinstance(payload, list):
            raise NotFoundError(f"{directory} is not a directory", path=directory)
        return sorted(item["name"] for item in payload)
