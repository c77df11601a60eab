from __future__ import annotations

import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from guild_relay_bot.discord.commands import (  # noqa: E402
    CommandUsage,
    ForgetGuild,
    Imagine,
    SetChatModel,
    SetImageModel,
    SetPersona,
    ShowStatus,
    ToggleListening,
    ToggleSecondaryTrigger,
    ToggleSharedScope,
    parse_command,
)


def test_non_commands_return_none() -> None:
    assert parse_command("hello there", "!") is None
    assert parse_command("!unknown thing", "!") is None
    assert parse_command("!listen", "") is None


def test_toggles_and_simple_commands() -> None:
    assert parse_command("!listen", "!") == ToggleListening()
    assert parse_command("  !SHARED ", "!") == ToggleSharedScope()
    assert parse_command("!keyword", "!") == ToggleSecondaryTrigger()
    assert parse_command("!forget", "!") == ForgetGuild()
    assert parse_command("!status", "!") == ShowStatus()


def test_persona_and_models() -> None:
    assert parse_command("!persona You are a pirate: arr", "!") == SetPersona("You are a pirate: arr")
    assert parse_command("!model gemini-2.5-pro", "!") == SetChatModel("gemini-2.5-pro")
    assert parse_command("!imagemodel gemini-3-pro-image", "!") == SetImageModel("gemini-3-pro-image")

    usage = parse_command("!model gpt-4", "!")
    assert isinstance(usage, CommandUsage)
    assert "gemini-2.5-flash" in usage.text
    assert isinstance(parse_command("!persona", "!"), CommandUsage)


def test_imagine_options() -> None:
    assert parse_command("!imagine a red fox", "!") == Imagine("a red fox")
    assert parse_command("!imagine --size portrait --count 3 a red fox", "!") == Imagine("a red fox", "portrait", 3)
    assert parse_command("!imagine a fox --count 0", "!") == Imagine("a fox", "square", 1)
    assert isinstance(parse_command("!imagine --size huge fox", "!"), CommandUsage)
    assert isinstance(parse_command("!imagine", "!"), CommandUsage)
