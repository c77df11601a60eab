from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

discord = pytest.importorskip("discord")

from guild_relay_bot.discord.common import RichBlock, RichField, split_rich_chunks  # noqa: E402
from guild_relay_bot.discord.client import GuildRelayDiscordBot  # noqa: E402
from guild_relay_bot.discord.directory import DiscordGuildDirectory  # noqa: E402
from guild_relay_bot.discord.events import event_from_message  # noqa: E402
from guild_relay_bot.discord.mixins.image_mixin import decode_image_payload, unwrap_image_content  # noqa: E402
from guild_relay_bot.discord.replies import to_embed  # noqa: E402


def _user(user_id: int, name: str, **extra: object) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, name=name, global_name=None, bot=False, **extra)


def test_event_from_message_snapshots_fields_and_drops_bot_mention() -> None:
    bot_user = _user(999, "relay")
    message = SimpleNamespace(
        id=1234,
        guild=SimpleNamespace(id=1),
        channel=SimpleNamespace(id=10),
        author=_user(5, "alice", nick="Ali"),
        content="<@999> hi <@6>",
        attachments=[SimpleNamespace(filename="a.txt", url="https://cdn/a.txt", size=3, content_type="text/plain")],
        mentions=[bot_user, _user(6, "bob")],
        role_mentions=[SimpleNamespace(id=3, name="Staff")],
        reference=None,
    )

    event = event_from_message(message, bot_user)

    assert event.guild_id == 1 and event.channel_id == 10 and event.message_id == 1234
    assert event.author_display_name == "Ali"
    assert event.mentions_bot
    assert [user.id for user in event.mentioned_users] == [6]
    assert event.mentioned_roles[0].mention == "<@&3>"
    assert event.attachments[0].content_type == "text/plain"
    assert event.referenced_message is None


def test_to_embed_maps_block_fields() -> None:
    embed = to_embed(
        RichBlock(
            title="🎨 Image Generated",
            description="",
            colour=0x9B59B6,
            fields=[RichField("Model", "img", inline=True)],
            image_url="https://img/x.png",
            footer="Requested by alice",
        )
    )
    assert embed.title == "🎨 Image Generated"
    assert embed.colour.value == 0x9B59B6
    assert embed.fields[0].name == "Model" and embed.fields[0].inline
    assert embed.image.url == "https://img/x.png"
    assert embed.footer.text == "Requested by alice"


def test_snapshot_lists_roles_channels_and_members() -> None:
    async def members(limit: int):
        for member in [_user(5, "alice", nick=None)]:
            yield member

    async def fetch_roles():
        return [
            SimpleNamespace(id=1, name="@everyone", is_default=lambda: True),
            SimpleNamespace(id=3, name="Staff", is_default=lambda: False),
        ]

    async def fetch_channels():
        return [SimpleNamespace(id=20, name="general")]

    guild = SimpleNamespace(fetch_roles=fetch_roles, fetch_channels=fetch_channels, fetch_members=members)
    client = SimpleNamespace(get_guild=lambda guild_id: guild)
    directory = DiscordGuildDirectory(client, member_limit=10)

    snapshot = asyncio.run(directory.snapshot(1))

    assert [role.name for role in snapshot.roles] == ["Staff"]
    assert [channel.mention for channel in snapshot.channels] == ["<#20>"]
    assert [member.mention for member in snapshot.members] == ["<@5>"]


def test_image_content_unwrapping_and_decoding() -> None:
    assert unwrap_image_content("![image](https://img/x.png)") == "https://img/x.png"
    assert unwrap_image_content(" https://img/y.png ") == "https://img/y.png"
    assert decode_image_payload("data:image/png;base64,iVBO\nRw==") == b"\x89PNG"
    assert decode_image_payload("not base64 at all!") is None


def test_snapshot_keeps_roles_and_channels_without_members_intent() -> None:
    async def members(limit: int):
        raise discord.ClientException("Intents.members must be enabled to use this.")
        yield

    async def fetch_roles():
        return [SimpleNamespace(id=3, name="Staff", is_default=lambda: False)]

    async def fetch_channels():
        return [SimpleNamespace(id=20, name="general")]

    guild = SimpleNamespace(fetch_roles=fetch_roles, fetch_channels=fetch_channels, fetch_members=members)
    directory = DiscordGuildDirectory(SimpleNamespace(get_guild=lambda guild_id: guild))

    snapshot = asyncio.run(directory.snapshot(1))

    assert [role.name for role in snapshot.roles] == ["Staff"]
    assert [channel.name for channel in snapshot.channels] == ["general"]
    assert snapshot.members == []


def test_rich_chunks_cut_at_separators_and_hard_split_long_words() -> None:
    text = "first line\nsecond part " + "x" * 30 + " tail\nend"

    chunks = split_rich_chunks(text, 12)

    assert "".join(chunks) == text
    assert max(len(chunk) for chunk in chunks) <= 12
    assert chunks[0] == "first line"
    assert chunks[1] == "\nsecond"
    assert "x" * 12 in chunks


def test_mention_cache_warm_up_runs_once_across_reconnects() -> None:
    warmed: list[int] = []

    async def warm(guild) -> None:
        warmed.append(guild.id)

    bot = SimpleNamespace(
        user=None,
        guilds=[SimpleNamespace(id=1), SimpleNamespace(id=2)],
        _mention_cache_warmed=False,
        _warm_mention_cache=warm,
    )

    async def scenario() -> None:
        await GuildRelayDiscordBot.on_ready(bot)
        await GuildRelayDiscordBot.on_ready(bot)

    asyncio.run(scenario())
    assert warmed == [1, 2]
