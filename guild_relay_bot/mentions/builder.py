from __future__ import annotations

from typing import Iterable

from ..discord.common import GuildSnapshot, MessageEvent, RoleRef, UserRef
from .substitution import MentionReplacement, sort_replacements


def role_replacements(roles: Iterable[RoleRef]) -> list[MentionReplacement]:
    return [
        MentionReplacement(pattern=f"@{role.name.strip()}", token=role.mention)
        for role in roles
        if role.name.strip()
    ]


def member_replacements(users: Iterable[UserRef]) -> list[MentionReplacement]:
    entries: list[MentionReplacement] = []
    for user in users:
        for name in user.names():
            entries.append(MentionReplacement(pattern=f"@{name}", token=user.mention))
    return entries


def build_replacements(snapshot: GuildSnapshot) -> list[MentionReplacement]:
    entries = role_replacements(snapshot.roles)
    entries.extend(
        MentionReplacement(pattern=f"#{channel.name.strip()}", token=channel.mention)
        for channel in snapshot.channels
        if channel.name.strip()
    )
    entries.extend(member_replacements(snapshot.members))
    return sort_replacements(entries)


def build_fallback_replacements(
    event: MessageEvent,
    roles: Iterable[RoleRef] = (),
) -> list[MentionReplacement]:
    """Reduced table for a guild with no cache: tagged users, the author and roles."""
    entries = role_replacements(roles)
    entries.extend(member_replacements([*event.mentioned_users, event.author]))
    return sort_replacements(entries)
