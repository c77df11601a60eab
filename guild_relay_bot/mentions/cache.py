from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence

from ..discord.common import GuildSnapshot, MessageEvent, RoleRef
from .builder import build_fallback_replacements, build_replacements
from .substitution import MentionReplacement, apply_replacements, sort_replacements

logger = logging.getLogger("guild_relay_bot")

SnapshotLoader = Callable[[], Awaitable[GuildSnapshot]]


@dataclass(frozen=True, slots=True)
class GuildMentionCache:
    guild_id: str
    replacements: tuple[MentionReplacement, ...]
    version: int
    built_at: float


class MentionCache:
    """Per-guild name -> mention token tables shared by every pipeline run.

    Entries are swapped wholesale under the injected lock; readers hold the lock
    only long enough to pick up the current entry, so a rebuild in progress never
    blocks them and they may see the previous table until the swap.
    """

    def __init__(self, lock: asyncio.Lock | None = None) -> None:
        self._lock = lock or asyncio.Lock()
        self._guilds: dict[str, GuildMentionCache] = {}
        self._version = 0
        self._tasks: set[asyncio.Task[None]] = set()

    async def get(self, guild_id: str) -> GuildMentionCache | None:
        async with self._lock:
            return self._guilds.get(guild_id)

    async def store(self, guild_id: str, replacements: Iterable[MentionReplacement]) -> GuildMentionCache:
        ordered = tuple(sort_replacements(replacements))
        async with self._lock:
            self._version += 1
            entry = GuildMentionCache(
                guild_id=guild_id,
                replacements=ordered,
                version=self._version,
                built_at=time.time(),
            )
            self._guilds[guild_id] = entry
        return entry

    async def refresh(self, guild_id: str, loader: SnapshotLoader) -> GuildMentionCache:
        snapshot = await loader()
        entry = await self.store(guild_id, build_replacements(snapshot))
        logger.info(
            "Mention cache rebuilt for guild=%s (%s entries, version=%s)",
            guild_id,
            len(entry.replacements),
            entry.version,
        )
        return entry

    def schedule_refresh(self, guild_id: str, loader: SnapshotLoader) -> None:
        """Rebuild the guild's table in the background.

        There is no completion signal and no error channel: failures are logged and
        the previous table (if any) stays in place. Callers that care about
        freshness compare ``GuildMentionCache.version`` or ``built_at``.
        """
        task = asyncio.create_task(self._run_refresh(guild_id, loader), name=f"mention-cache-{guild_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_refresh(self, guild_id: str, loader: SnapshotLoader) -> None:
        try:
            await self.refresh(guild_id, loader)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Mention cache rebuild failed for guild=%s: %s", guild_id, exc)

    async def apply(self, text: str, guild_id: str) -> str:
        entry = await self.get(guild_id)
        if entry is None:
            return text
        return apply_replacements(text, entry.replacements)

    @staticmethod
    def fallback(text: str, event: MessageEvent, roles: Sequence[RoleRef] = ()) -> str:
        return apply_replacements(text, build_fallback_replacements(event, roles))

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
