"""
HTTP client utilities for the content store and speech provider drivers.
"""

import asyncio
from typing import Any

import aiohttp


class AsyncHTTPClient:
    """Async HTTP client wrapping a single :class:`aiohttp.ClientSession`.

    Non-2xx responses raise :class:`aiohttp.ClientResponseError`; callers map the
    status code to their own error types.
    """

    def __init__(self, timeout: int = 30, headers: dict[str, str] | None = None) -> None:
        """Initialize HTTP client."""
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.default_headers = headers or {}
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        self.session = aiohttp.ClientSession(timeout=self.timeout, headers=self.default_headers)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self.session:
            await self.session.close()

    @staticmethod
    async def _prepare_request(coro_or_ctx: Any) -> Any:
        """Normalize aiohttp request result to an async context manager."""
        if asyncio.iscoroutine(coro_or_ctx):
            return await coro_or_ctx
        return coro_or_ctx

    @staticmethod
    async def _ensure_response_ok(response: Any) -> None:
        """Invoke raise_for_status, awaiting when necessary."""
        result = response.raise_for_status()
        if asyncio.iscoroutine(result):
            await result

    def _require_session(self) -> aiohttp.ClientSession:
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")
        return self.session

    async def get(
        self,
        url: str,
        headers: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Perform GET request and decode the JSON body."""
        session = self._require_session()

        request_ctx = await self._prepare_request(session.get(url, headers=headers, params=params))
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json()

    async def put(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
    ) -> Any:
        """Perform PUT request with a JSON body."""
        session = self._require_session()

        request_ctx = await self._prepare_request(session.put(url, json=data, headers=headers))
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json()

    async def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
    ) -> Any:
        """Perform POST request with a JSON body."""
        session = self._require_session()

        request_ctx = await self._prepare_request(session.post(url, json=data, headers=headers))
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json()

    async def post_for_bytes(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
    ) -> bytes:
        """Perform POST request and return the raw response body."""
        session = self._require_session()

        request_ctx = await self._prepare_request(session.post(url, json=data, headers=headers))
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.read()
