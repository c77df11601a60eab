from __future__ import annotations

import asyncio
import sqlite3
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from guild_relay_bot.memory import ChannelPolicy, ConversationTurn, GuildPolicy, MemoryStore  # noqa: E402
from guild_relay_bot.memory.storage.schema import MemorySchemaMixin  # noqa: E402


def _turn(user_id: str, role: str, content: str, created_at: int, channel_id: str = "10") -> ConversationTurn:
    return ConversationTurn(
        guild_id="1",
        channel_id=channel_id,
        user_id=user_id,
        author_name=user_id,
        role=role,
        content=content,
        created_at=created_at,
    )


def test_policies_default_on_miss(tmp_path: Path) -> None:
    async def scenario() -> tuple[GuildPolicy, ChannelPolicy]:
        store = MemoryStore(tmp_path / "relay.db", system_prompt="Be brief.")
        await store.init()
        return await store.get_guild_policy("404"), await store.get_channel_policy("404")

    guild, channel = asyncio.run(scenario())
    assert guild == GuildPolicy("404", "gemini-2.5-flash", "gemini-3-pro-image", "Be brief.")
    assert channel == ChannelPolicy(channel_id="404")


def test_policies_round_trip_and_blank_columns_use_defaults(tmp_path: Path) -> None:
    async def scenario() -> tuple[GuildPolicy, ChannelPolicy]:
        store = MemoryStore(tmp_path / "relay.db")
        await store.init()
        await store.put_guild_policy(GuildPolicy("1", "gemini-2.5-pro", "", "Pirate voice."))
        await store.put_channel_policy(ChannelPolicy("10", "1", is_listening=True, shared_scope=True))
        return await store.get_guild_policy("1"), await store.get_channel_policy("10")

    guild, channel = asyncio.run(scenario())
    assert guild.chat_model == "gemini-2.5-pro"
    assert guild.image_model == "gemini-3-pro-image"
    assert guild.system_prompt == "Pirate voice."
    assert channel.is_listening and channel.shared_scope and not channel.secondary_trigger_enabled


def test_history_is_scoped_to_user_unless_shared(tmp_path: Path) -> None:
    async def scenario() -> tuple[list[str], list[str], list[str]]:
        store = MemoryStore(tmp_path / "relay.db")
        await store.init()
        await store.append_turn(_turn("5", "user", "alice 1", 100))
        await store.append_turn(_turn("6", "user", "bob 1", 101))
        await store.append_turn(_turn("999", "assistant", "bot 1", 102))
        await store.append_turn(_turn("5", "user", "alice 2", 103))
        await store.append_turn(_turn("5", "user", "other channel", 104, channel_id="11"))

        scoped = await store.fetch_history("10", "5", 20)
        shared = await store.fetch_history("10", None, 20)
        windowed = await store.fetch_history("10", None, 2)
        return (
            [t.content for t in scoped],
            [t.content for t in shared],
            [t.content for t in windowed],
        )

    scoped, shared, windowed = asyncio.run(scenario())
    assert scoped == ["alice 1", "bot 1", "alice 2"]
    assert shared == ["alice 1", "bob 1", "bot 1", "alice 2"]
    assert windowed == ["bot 1", "alice 2"]


def test_empty_history_is_not_an_error(tmp_path: Path) -> None:
    async def scenario() -> list[ConversationTurn]:
        store = MemoryStore(tmp_path / "relay.db")
        await store.init()
        return await store.fetch_history("10", "5", 20)

    assert asyncio.run(scenario()) == []


def test_wipe_removes_only_the_guild(tmp_path: Path) -> None:
    async def scenario() -> tuple[int, int, int]:
        store = MemoryStore(tmp_path / "relay.db")
        await store.init()
        await store.append_turn(_turn("5", "user", "a", 100))
        await store.append_turn(_turn("5", "user", "b", 101))
        other = _turn("5", "user", "c", 102, channel_id="77")
        other.guild_id = "2"
        await store.append_turn(other)
        removed = await store.wipe("1")
        return removed, len(await store.fetch_history("10", None, 20)), len(await store.fetch_history("77", None, 20))

    assert asyncio.run(scenario()) == (2, 0, 1)


def test_schema_mismatch_raises_without_opt_in(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MEMORY_SQLITE_RESET_ON_SCHEMA_MISMATCH", raising=False)
    db_path = tmp_path / "relay.db"

    asyncio.run(MemorySchemaMixin(db_path).init())
    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA user_version = 999")
        conn.commit()

    with pytest.raises(RuntimeError, match="schema version mismatch"):
        asyncio.run(MemorySchemaMixin(db_path).init())


def test_schema_mismatch_can_reset_with_explicit_opt_in(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    db_path = tmp_path / "relay.db"
    asyncio.run(MemorySchemaMixin(db_path).init())

    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA user_version = 999")
        conn.commit()

    monkeypatch.setenv("MEMORY_SQLITE_RESET_ON_SCHEMA_MISMATCH", "1")
    asyncio.run(MemorySchemaMixin(db_path).init())

    with sqlite3.connect(db_path) as conn:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
    assert version == MemorySchemaMixin.SCHEMA_VERSION



def test_fresh_database_is_stamped_with_schema_version(tmp_path: Path) -> None:
    db_path = tmp_path / "relay.db"
    asyncio.run(MemorySchemaMixin(db_path).init())
    asyncio.run(MemorySchemaMixin(db_path).init())

    with sqlite3.connect(db_path) as conn:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
    assert version == MemorySchemaMixin.SCHEMA_VERSION == 1
