from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List

import aiohttp

from ..errors import CompletionUnavailable, DecodeFailure, ImageCountUnsupported, TransportFailure

IMAGE_COUNT_UNSUPPORTED_MARKER = "Only one candidate can be specified"

IMAGE_SIZES = {
    "square": "1024x1024",
    "portrait": "720x1280",
    "landscape": "1280x720",
}


class CompletionClient:
    """One-shot client for an OpenAI-compatible chat completions endpoint.

    Every call is a single request with its own deadline; nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 120.0,
        max_tier: str = "FREE",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.max_tier = max_tier
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    def _endpoint(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.max_tier:
            headers["X-Max-Tier"] = self.max_tier
        return headers

    async def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.base_url:
            raise CompletionUnavailable("Completion endpoint is not configured")
        if self._session is None or self._session.closed:
            await self.start()
        assert self._session is not None

        try:
            async with self._session.post(self._endpoint(), json=payload, headers=self._headers()) as response:
                status = response.status
                text = await response.text()
        except asyncio.CancelledError:
            raise
        except aiohttp.ClientConnectorError as exc:
            raise CompletionUnavailable(f"Completion endpoint unreachable: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportFailure(f"Completion request failed: {exc!r}") from exc

        if status != 200:
            if IMAGE_COUNT_UNSUPPORTED_MARKER in text:
                raise ImageCountUnsupported(f"Completion error {status}: {text[:300]}")
            raise TransportFailure(f"Completion error {status}: {text[:300]}")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodeFailure(f"Completion returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise DecodeFailure("Completion returned a non-object payload")
        return data

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise DecodeFailure("Completion returned no choices")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            chunks: List[str] = []
            for part in content:
                if isinstance(part, dict) and isinstance(part.get("text"), str):
                    chunks.append(part["text"])
            if chunks:
                return "".join(chunks)
        raise DecodeFailure("Completion returned no message content")

    async def complete(self, model: str, messages: List[Dict[str, Any]]) -> str:
        payload: Dict[str, Any] = {"model": model, "messages": messages}
        data = await self._request(payload)
        return self._extract_text(data)

    async def generate_image(self, model: str, prompt: str, size: str, count: int = 1) -> str:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "extra_body": {"size": size},
            "n": max(1, int(count)),
        }
        data = await self._request(payload)
        return self._extract_text(data)
