from __future__ import annotations

import asyncio
import hashlib
import time
from dataclasses import dataclass
from typing import Any, Dict

import aiohttp

from ..errors import DecodeFailure, PlayerNotFound, TransportFailure


@dataclass(slots=True)
class PlayerProfile:
    fid: int
    nickname: str
    kid: int
    stove_lv: int
    stove_lv_content: str
    avatar_image: str


def stove_level_display(level: int) -> str:
    if 31 <= level <= 34:
        return f"30-{level - 30}"
    if 35 <= level <= 84:
        tier, step = divmod(level - 35, 5)
        return f"FC {tier + 1}" if step == 0 else f"FC {tier + 1}-{step}"
    return f"Level {level}"


def sign_form(form: str, secret: str) -> str:
    return hashlib.md5(f"{form}{secret}".encode("utf-8")).hexdigest()


def build_signed_body(fid: int, secret: str, now_ms: int) -> str:
    form = f"fid={fid}&time={now_ms}"
    return f"sign={sign_form(form, secret)}&{form}"


class PlayerLookupClient:
    def __init__(
        self,
        url: str,
        origin: str,
        secret: str,
        timeout_seconds: float = 20.0,
    ) -> None:
        self.url = url
        self.origin = origin.rstrip("/")
        self.secret = secret
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def fetch_player(self, fid: int) -> PlayerProfile:
        if self._session is None or self._session.closed:
            await self.start()
        assert self._session is not None

        body = build_signed_body(fid, self.secret, int(time.time() * 1000))
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": self.origin,
            "Referer": f"{self.origin}/",
        }
        try:
            async with self._session.post(self.url, data=body, headers=headers) as response:
                payload = await response.json(content_type=None)
        except asyncio.CancelledError:
            raise
        except ValueError as exc:
            raise DecodeFailure(f"Player API returned invalid JSON: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportFailure(f"Player API request failed: {exc!r}") from exc

        return self._parse_profile(payload)

    @staticmethod
    def _parse_profile(payload: Any) -> PlayerProfile:
        if not isinstance(payload, dict):
            raise DecodeFailure("Player API returned a non-object payload")
        if str(payload.get("err_code") or ""):
            raise PlayerNotFound("Player not found")
        data: Dict[str, Any] | None = payload.get("data")
        if not isinstance(data, dict):
            raise PlayerNotFound("No player data returned")
        try:
            return PlayerProfile(
                fid=int(data["fid"]),
                nickname=str(data.get("nickname") or ""),
                kid=int(data.get("kid") or 0),
                stove_lv=int(data.get("stove_lv") or 0),
                stove_lv_content=str(data.get("stove_lv_content") or ""),
                avatar_image=str(data.get("avatar_image") or ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeFailure(f"Player API payload is malformed: {exc}") from exc
