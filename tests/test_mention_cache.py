from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from guild_relay_bot.discord.common import (  # noqa: E402
    ChannelRef,
    GuildSnapshot,
    MessageEvent,
    RoleRef,
    UserRef,
)
from guild_relay_bot.mentions.builder import build_replacements  # noqa: E402
from guild_relay_bot.mentions.cache import MentionCache  # noqa: E402
from guild_relay_bot.mentions.substitution import (  # noqa: E402
    MentionReplacement,
    apply_replacements,
    sort_replacements,
)


def test_longest_pattern_wins_over_shorter_prefix() -> None:
    table = sort_replacements(
        [
            MentionReplacement("@John", "<@1>"),
            MentionReplacement("@Johnny", "<@2>"),
        ]
    )
    assert [item.pattern for item in table] == ["@Johnny", "@John"]
    assert apply_replacements("hey @Johnny and @john", table) == "hey <@2> and <@1>"


def test_pattern_requires_non_word_boundary_after_name() -> None:
    table = [MentionReplacement("@John", "<@1>")]
    assert apply_replacements("@Johnathan says hi", table) == "@Johnathan says hi"
    assert apply_replacements("ping @John, now", table) == "ping <@1>, now"
    assert apply_replacements("@John", table) == "<@1>"


def test_existing_mention_tokens_are_left_alone() -> None:
    table = [MentionReplacement("#123", "<#999>")]
    assert apply_replacements("see <#123> or #123", table) == "see <#123> or <#999>"


def test_sort_drops_blank_and_duplicate_patterns() -> None:
    table = sort_replacements(
        [
            MentionReplacement("@", "<@1>"),
            MentionReplacement("@Ann", ""),
            MentionReplacement("@ann", "<@2>"),
            MentionReplacement("@ANN", "<@3>"),
        ]
    )
    assert table == [MentionReplacement("@ann", "<@2>")]


def test_build_replacements_covers_roles_channels_and_member_aliases() -> None:
    snapshot = GuildSnapshot(
        roles=[RoleRef(7, "Moderators")],
        channels=[ChannelRef(20, "general")],
        members=[UserRef(5, "alice_w", global_name="Alice", nickname="Ali")],
    )
    table = build_replacements(snapshot)
    patterns = {item.pattern: item.token for item in table}

    assert patterns == {
        "@Moderators": "<@&7>",
        "#general": "<#20>",
        "@alice_w": "<@5>",
        "@Alice": "<@5>",
        "@Ali": "<@5>",
    }
    lengths = [len(item.pattern) for item in table]
    assert lengths == sorted(lengths, reverse=True)


def test_refresh_swaps_table_and_bumps_version() -> None:
    async def scenario() -> None:
        cache = MentionCache()
        assert await cache.get("1") is None
        assert await cache.apply("@Alice hi", "1") == "@Alice hi"

        async def first() -> GuildSnapshot:
            return GuildSnapshot(members=[UserRef(5, "Alice")])

        async def second() -> GuildSnapshot:
            return GuildSnapshot(members=[UserRef(6, "Bob")])

        entry_a = await cache.refresh("1", first)
        assert await cache.apply("@Alice hi", "1") == "<@5> hi"

        entry_b = await cache.refresh("1", second)
        assert entry_b.version > entry_a.version
        # Rebuilds replace the table wholesale.
        assert await cache.apply("@Alice @Bob", "1") == "@Alice <@6>"

    asyncio.run(scenario())


def test_scheduled_refresh_logs_failure_and_keeps_previous_table(caplog: pytest.LogCaptureFixture) -> None:
    async def scenario() -> None:
        cache = MentionCache()
        await cache.store("1", [MentionReplacement("@Alice", "<@5>")])

        async def broken() -> GuildSnapshot:
            raise RuntimeError("roster unavailable")

        cache.schedule_refresh("1", broken)
        await asyncio.gather(*list(cache._tasks))

        entry = await cache.get("1")
        assert entry is not None
        assert entry.replacements == (MentionReplacement("@Alice", "<@5>"),)

    asyncio.run(scenario())
    assert "Mention cache rebuild failed for guild=1" in caplog.text


def test_close_cancels_inflight_rebuilds() -> None:
    async def scenario() -> None:
        cache = MentionCache()
        started = asyncio.Event()

        async def slow() -> GuildSnapshot:
            started.set()
            await asyncio.sleep(60)
            return GuildSnapshot()

        cache.schedule_refresh("1", slow)
        await started.wait()
        await cache.close()
        assert await cache.get("1") is None

    asyncio.run(scenario())


def test_fallback_uses_only_tagged_users_author_and_roles() -> None:
    event = MessageEvent(
        guild_id=1,
        channel_id=10,
        author=UserRef(5, "alice"),
        raw_content="",
        mentioned_users=[UserRef(6, "bob", nickname="Bobby")],
    )
    text = "@alice @Bobby @carol @Staff"
    assert MentionCache.fallback(text, event) == "<@5> <@6> @carol @Staff"
    assert MentionCache.fallback(text, event, [RoleRef(3, "Staff")]) == "<@5> <@6> @carol <@&3>"
