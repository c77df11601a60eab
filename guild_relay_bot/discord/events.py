from __future__ import annotations

from typing import Any

import discord

from .common import AttachmentRef, MessageEvent, ReferencedMessage, RoleRef, UserRef


def user_ref(user: discord.abc.User | Any) -> UserRef:
    return UserRef(
        id=int(user.id),
        username=str(getattr(user, "name", "") or ""),
        global_name=(getattr(user, "global_name", None) or "").strip() or None,
        nickname=(getattr(user, "nick", None) or "").strip() or None,
        bot=bool(getattr(user, "bot", False)),
    )


def _referenced_message(message: discord.Message) -> ReferencedMessage | None:
    reference = message.reference
    if reference is None:
        return None
    resolved = reference.resolved
    if not isinstance(resolved, discord.Message):
        return None
    return ReferencedMessage(author_name=resolved.author.name, content=resolved.content or "")


def event_from_message(message: discord.Message, bot_user: discord.ClientUser | None) -> MessageEvent:
    """Snapshot the parts of a gateway message the pipeline reads."""
    mentions_bot = bot_user is not None and any(user.id == bot_user.id for user in message.mentions)
    return MessageEvent(
        guild_id=message.guild.id if message.guild else None,
        channel_id=message.channel.id,
        author=user_ref(message.author),
        raw_content=message.content or "",
        message_id=message.id,
        attachments=[
            AttachmentRef(
                filename=attachment.filename,
                url=attachment.url,
                size=attachment.size,
                content_type=attachment.content_type,
            )
            for attachment in message.attachments
        ],
        mentioned_users=[user_ref(user) for user in message.mentions if bot_user is None or user.id != bot_user.id],
        mentioned_roles=[RoleRef(id=role.id, name=role.name) for role in message.role_mentions],
        referenced_message=_referenced_message(message),
        mentions_bot=mentions_bot,
    )
