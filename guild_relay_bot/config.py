from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()

DEFAULT_PLAYER_LOOKUP_URL = "https://wos-giftcode-api.centurygame.com/api/player"
DEFAULT_PLAYER_LOOKUP_ORIGIN = "https://wos-giftcode.centurygame.com"


def _env_lookup(name: str, aliases: tuple[str, ...] = ()) -> str | None:
    for key in (name, *aliases):
        # Be tolerant to UTF-8 BOM accidentally saved in .env key names.
        for candidate in (key, f"\ufeff{key}"):
            raw = os.getenv(candidate)
            if raw is not None:
                return raw
    return None


def _env_bool(name: str, default: bool, aliases: tuple[str, ...] = ()) -> bool:
    raw = _env_lookup(name, aliases)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, aliases: tuple[str, ...] = ()) -> int:
    raw = _env_lookup(name, aliases)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float, aliases: tuple[str, ...] = ()) -> float:
    raw = _env_lookup(name, aliases)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _clean_token(value: str) -> str:
    cleaned = value.strip()
    if cleaned.lower().startswith("bot "):
        cleaned = cleaned[4:].strip()
    if (cleaned.startswith('"') and cleaned.endswith('"')) or (
        cleaned.startswith("'") and cleaned.endswith("'")
    ):
        cleaned = cleaned[1:-1].strip()
    return cleaned


def _env_str(name: str, default: str, aliases: tuple[str, ...] = ()) -> str:
    raw = _env_lookup(name, aliases)
    if raw is None:
        return default
    value = raw.strip()
    return value if value else default


@dataclass(slots=True)
class Settings:
    discord_token: str
    command_prefix: str
    discord_message_content_intent: bool
    discord_members_intent: bool

    sqlite_path: Path

    completion_base_url: str
    completion_api_key: str
    completion_max_tier: str
    completion_timeout_seconds: float

    history_limit: int
    trigger_keyword: str
    default_chat_model: str
    default_image_model: str
    default_system_prompt: str

    plain_reply_max_chars: int
    rich_chunk_max_chars: int

    text_attachment_max_bytes: int
    image_attachment_max_bytes: int
    attachment_timeout_seconds: float

    mention_member_limit: int
    mention_fallback_include_roles: bool

    player_lookup_url: str
    player_lookup_origin: str
    player_lookup_secret: str
    player_lookup_timeout_seconds: float

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            discord_token=_clean_token(_env_lookup("DISCORD_TOKEN") or ""),
            command_prefix=_env_str("DISCORD_COMMAND_PREFIX", "!"),
            discord_message_content_intent=_env_bool("DISCORD_MESSAGE_CONTENT_INTENT", True),
            discord_members_intent=_env_bool("DISCORD_MEMBERS_INTENT", True),
            sqlite_path=Path(_env_str("SQLITE_PATH", "./data/guild_relay.db")).expanduser(),
            completion_base_url=_env_str("COMPLETION_BASE_URL", "http://127.0.0.1:8045", aliases=("PROXY_BASE_URL",)),
            completion_api_key=_env_str("COMPLETION_API_KEY", ""),
            completion_max_tier=_env_str("COMPLETION_MAX_TIER", "FREE"),
            completion_timeout_seconds=_env_float("COMPLETION_TIMEOUT_SECONDS", 120.0),
            history_limit=_env_int("HISTORY_LIMIT", 20, aliases=("MAX_HISTORY_MESSAGES",)),
            trigger_keyword=_env_str("TRIGGER_KEYWORD", "din"),
            default_chat_model=_env_str("DEFAULT_CHAT_MODEL", "gemini-2.5-flash"),
            default_image_model=_env_str("DEFAULT_IMAGE_MODEL", "gemini-3-pro-image"),
            default_system_prompt=_env_str(
                "DEFAULT_SYSTEM_PROMPT",
                "You are a helpful assistant.",
                aliases=("SYSTEM_CORE_PROMPT",),
            ),
            plain_reply_max_chars=_env_int("PLAIN_REPLY_MAX_CHARS", 2000),
            rich_chunk_max_chars=_env_int("RICH_CHUNK_MAX_CHARS", 4000),
            text_attachment_max_bytes=_env_int("TEXT_ATTACHMENT_MAX_BYTES", 200 * 1024),
            image_attachment_max_bytes=_env_int("IMAGE_ATTACHMENT_MAX_BYTES", 5 * 1024 * 1024),
            attachment_timeout_seconds=_env_float("ATTACHMENT_TIMEOUT_SECONDS", 30.0),
            mention_member_limit=_env_int("MENTION_MEMBER_LIMIT", 1000),
            mention_fallback_include_roles=_env_bool("MENTION_FALLBACK_INCLUDE_ROLES", True),
            player_lookup_url=_env_str("PLAYER_LOOKUP_URL", DEFAULT_PLAYER_LOOKUP_URL),
            player_lookup_origin=_env_str("PLAYER_LOOKUP_ORIGIN", DEFAULT_PLAYER_LOOKUP_ORIGIN),
            player_lookup_secret=_env_str("PLAYER_LOOKUP_SECRET", ""),
            player_lookup_timeout_seconds=_env_float("PLAYER_LOOKUP_TIMEOUT_SECONDS", 20.0),
        )

    def validate(self) -> None:
        if not self.discord_token:
            raise ValueError("DISCORD_TOKEN is required")
        if self.discord_token == "put_your_discord_bot_token_here":
            raise ValueError("DISCORD_TOKEN is still placeholder")
        if not self.command_prefix.strip():
            raise ValueError("DISCORD_COMMAND_PREFIX cannot be empty")

        if self.completion_timeout_seconds <= 0:
            raise ValueError("COMPLETION_TIMEOUT_SECONDS must be > 0")
        if self.history_limit < 1:
            raise ValueError("HISTORY_LIMIT must be >= 1")
        if not self.trigger_keyword.strip():
            raise ValueError("TRIGGER_KEYWORD cannot be empty")
        if not self.default_chat_model:
            raise ValueError("DEFAULT_CHAT_MODEL cannot be empty")

        if self.plain_reply_max_chars < 1 or self.plain_reply_max_chars > 2000:
            raise ValueError("PLAIN_REPLY_MAX_CHARS must be in [1, 2000]")
        if self.rich_chunk_max_chars < 1 or self.rich_chunk_max_chars >= 4096:
            raise ValueError("RICH_CHUNK_MAX_CHARS must be in [1, 4095]")

        if self.text_attachment_max_bytes < 0:
            raise ValueError("TEXT_ATTACHMENT_MAX_BYTES must be >= 0")
        if self.image_attachment_max_bytes < 0:
            raise ValueError("IMAGE_ATTACHMENT_MAX_BYTES must be >= 0")
        if self.attachment_timeout_seconds <= 0:
            raise ValueError("ATTACHMENT_TIMEOUT_SECONDS must be > 0")

        if self.mention_member_limit < 1 or self.mention_member_limit > 1000:
            raise ValueError("MENTION_MEMBER_LIMIT must be in [1, 1000]")
        if self.player_lookup_timeout_seconds <= 0:
            raise ValueError("PLAYER_LOOKUP_TIMEOUT_SECONDS must be > 0")
