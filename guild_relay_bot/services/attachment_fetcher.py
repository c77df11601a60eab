from __future__ import annotations

import asyncio

import aiohttp

from ..errors import TransportFailure


class AttachmentFetcher:
    """Downloads message attachments; every download owns its own deadline."""

    def __init__(self, timeout_seconds: float = 30.0) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def fetch_bytes(self, url: str, max_bytes: int) -> tuple[bytes, str | None]:
        if self._session is None or self._session.closed:
            await self.start()
        assert self._session is not None

        try:
            async with self._session.get(url) as response:
                if response.status != 200:
                    raise TransportFailure(f"Download failed with status {response.status}: {url}")
                data = await response.content.read(max_bytes + 1)
                content_type = response.headers.get("Content-Type")
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportFailure(f"Download failed: {exc!r}") from exc

        if len(data) > max_bytes:
            raise TransportFailure(f"Download exceeds {max_bytes} bytes: {url}")
        return data, content_type

    async def fetch_text(self, url: str, max_bytes: int) -> str:
        data, _ = await self.fetch_bytes(url, max_bytes)
        return data.decode("utf-8", errors="replace")
