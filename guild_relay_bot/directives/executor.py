from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ..discord.common import ChannelRef, MessageEvent, RoleRef
from ..errors import UnresolvedReference
from ..mentions.cache import MentionCache
from ..mentions.substitution import apply_replacements
from .parser import ChannelIdTarget, ChannelNameTarget, Directive, parse_directives, strip_directives

logger = logging.getLogger("guild_relay_bot")

SUCCESS_CONFIRMATION = "✅ Message sent."
REPORT_HEADER = "🤖 **System Report:**"


class GuildDirectory(Protocol):
    async def list_channels(self, guild_id: int) -> Sequence[ChannelRef]: ...

    async def list_roles(self, guild_id: int) -> Sequence[RoleRef]: ...

    async def send_message(self, channel_id: int, content: str) -> None: ...


@dataclass(slots=True)
class DirectiveOutcome:
    directive: Directive
    ok: bool
    channel_id: int | None = None
    error: str = ""

    def describe(self) -> str:
        reference = self.directive.target_reference
        if self.ok:
            return f"Message sent to {reference}"
        if self.channel_id is None:
            return f"⚠️ Could not find channel '{reference}'"
        return f"Failed to send to {reference}: {self.error}"


@dataclass(slots=True)
class DirectiveRun:
    visible_text: str
    outcomes: list[DirectiveOutcome] = field(default_factory=list)

    @property
    def any_failed(self) -> bool:
        return any(not outcome.ok for outcome in self.outcomes)

    def confirmation(self) -> str | None:
        if not self.outcomes:
            return None
        if not self.any_failed:
            return SUCCESS_CONFIRMATION
        lines = [outcome.describe() for outcome in self.outcomes]
        return "\n".join([REPORT_HEADER, *lines])

    def report_summary(self) -> str:
        return ", ".join(outcome.describe() for outcome in self.outcomes)


class _ChannelListing:
    """Live channel listing fetched at most once per directive run."""

    def __init__(self, directory: GuildDirectory, guild_id: int | None) -> None:
        self._directory = directory
        self._guild_id = guild_id
        self._channels: Sequence[ChannelRef] | None = None

    async def find(self, name: str) -> ChannelRef | None:
        if self._guild_id is None or not name:
            return None
        if self._channels is None:
            try:
                self._channels = await self._directory.list_channels(self._guild_id)
            except Exception as exc:
                logger.warning("Channel listing failed for guild=%s: %s", self._guild_id, exc)
                self._channels = []
        wanted = name.casefold()
        for channel in self._channels:
            if channel.name.casefold() == wanted:
                return channel
        return None


class DirectiveExecutor:
    def __init__(
        self,
        directory: GuildDirectory,
        mention_cache: MentionCache,
        *,
        fallback_include_roles: bool = True,
    ) -> None:
        self.directory = directory
        self.mention_cache = mention_cache
        self.fallback_include_roles = fallback_include_roles

    async def execute(self, completion: str, event: MessageEvent) -> DirectiveRun:
        directives = parse_directives(completion)
        if not directives:
            return DirectiveRun(visible_text=completion)

        listing = _ChannelListing(self.directory, event.guild_id)
        outcomes: list[DirectiveOutcome] = []
        # Last-appearing directive runs first.
        for directive in reversed(directives):
            outcomes.append(await self._execute_one(directive, event, listing))

        return DirectiveRun(visible_text=strip_directives(completion), outcomes=outcomes)

    async def _execute_one(
        self,
        directive: Directive,
        event: MessageEvent,
        listing: _ChannelListing,
    ) -> DirectiveOutcome:
        try:
            channel_id = await self._resolve_target(directive, listing)
        except UnresolvedReference as exc:
            logger.warning("[directive] %s", exc)
            return DirectiveOutcome(directive=directive, ok=False)

        body = directive.body
        if "@" in body:
            body = await self.resolve_mentions(body, event)

        try:
            await self.directory.send_message(channel_id, body)
        except Exception as exc:
            logger.warning("[directive] send to channel=%s failed: %s", channel_id, exc)
            return DirectiveOutcome(directive=directive, ok=False, channel_id=channel_id, error=str(exc))

        logger.info("[directive] sent to channel=%s via target=%s", channel_id, directive.target_reference)
        return DirectiveOutcome(directive=directive, ok=True, channel_id=channel_id)

    async def _resolve_target(self, directive: Directive, listing: _ChannelListing) -> int:
        target = directive.target
        if isinstance(target, ChannelIdTarget):
            return target.channel_id
        if isinstance(target, ChannelNameTarget):
            channel = await listing.find(target.name)
            if channel is not None:
                return channel.id
        raise UnresolvedReference(directive.target_reference)

    async def resolve_mentions(self, text: str, event: MessageEvent) -> str:
        if event.guild_id is None:
            return self.mention_cache.fallback(text, event)
        cached = await self.mention_cache.get(event.guild_key)
        if cached is not None:
            return apply_replacements(text, cached.replacements)

        roles: Sequence[RoleRef] = ()
        if self.fallback_include_roles:
            try:
                roles = await self.directory.list_roles(event.guild_id)
            except Exception as exc:
                logger.warning("Role listing failed for guild=%s: %s", event.guild_id, exc)
        return self.mention_cache.fallback(text, event, roles)
