from __future__ import annotations

from dataclasses import dataclass, field
import time


@dataclass(slots=True)
class ConversationTurn:
    guild_id: str
    channel_id: str
    user_id: str
    author_name: str
    role: str
    content: str
    created_at: int = field(default_factory=lambda: int(time.time()))


@dataclass(slots=True)
class GuildPolicy:
    guild_id: str
    chat_model: str
    image_model: str
    system_prompt: str


@dataclass(slots=True)
class ChannelPolicy:
    channel_id: str
    guild_id: str = ""
    is_listening: bool = False
    shared_scope: bool = False
    secondary_trigger_enabled: bool = False
