from __future__ import annotations

import re
from dataclasses import dataclass, field


def collapse_spaces(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return (text[: limit - 3].rstrip() + "...").strip()


def split_rich_chunks(text: str, limit: int = 4000) -> list[str]:
    """Cut ``text`` into pieces of at most ``limit`` characters.

    Each cut lands on the last newline or space inside the window when there is
    one, and the separator starts the next piece, so ``"".join(chunks) == text``.
    """
    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break
        window = remaining[:limit]
        cut = max(window.rfind("\n"), window.rfind(" "))
        if cut <= 0:
            cut = limit
        chunks.append(remaining[:cut])
        remaining = remaining[cut:]
    return chunks


@dataclass(slots=True)
class UserRef:
    id: int
    username: str
    global_name: str | None = None
    nickname: str | None = None
    bot: bool = False

    @property
    def display_name(self) -> str:
        for name in (self.nickname, self.global_name, self.username):
            if name and name.strip():
                return name.strip()
        return f"user:{self.id}"

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"

    def names(self) -> list[str]:
        result: list[str] = []
        for name in (self.username, self.global_name, self.nickname):
            cleaned = (name or "").strip()
            if cleaned and cleaned not in result:
                result.append(cleaned)
        return result


@dataclass(slots=True)
class RoleRef:
    id: int
    name: str

    @property
    def mention(self) -> str:
        return f"<@&{self.id}>"


@dataclass(slots=True)
class ChannelRef:
    id: int
    name: str

    @property
    def mention(self) -> str:
        return f"<#{self.id}>"


@dataclass(slots=True)
class AttachmentRef:
    filename: str
    url: str
    size: int
    content_type: str | None = None


@dataclass(slots=True)
class ReferencedMessage:
    author_name: str
    content: str


@dataclass(slots=True)
class MessageEvent:
    guild_id: int | None
    channel_id: int
    author: UserRef
    raw_content: str
    message_id: int = 0
    attachments: list[AttachmentRef] = field(default_factory=list)
    mentioned_users: list[UserRef] = field(default_factory=list)
    mentioned_roles: list[RoleRef] = field(default_factory=list)
    referenced_message: ReferencedMessage | None = None
    mentions_bot: bool = False

    @property
    def author_id(self) -> int:
        return self.author.id

    @property
    def author_display_name(self) -> str:
        return self.author.display_name

    @property
    def guild_key(self) -> str:
        return str(self.guild_id) if self.guild_id is not None else ""


@dataclass(slots=True)
class GuildSnapshot:
    roles: list[RoleRef] = field(default_factory=list)
    channels: list[ChannelRef] = field(default_factory=list)
    members: list[UserRef] = field(default_factory=list)


@dataclass(slots=True)
class RichField:
    name: str
    value: str
    inline: bool = False


@dataclass(slots=True)
class RichBlock:
    """Embed content without the discord types, so replies can be built in tests."""

    description: str = ""
    title: str = ""
    colour: int = 0
    fields: list[RichField] = field(default_factory=list)
    thumbnail_url: str = ""
    image_url: str = ""
    footer: str = ""
