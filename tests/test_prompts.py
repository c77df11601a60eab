from __future__ import annotations

import json
import os
import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from guild_relay_bot.discord.common import ChannelRef, ReferencedMessage, RoleRef, UserRef  # noqa: E402
from guild_relay_bot.prompts.context import (  # noqa: E402
    build_entity_context,
    build_system_prompt,
    format_text_attachment,
    format_user_turn,
)
from guild_relay_bot.prompts.json_loader import clear_prompt_cache, load_prompt_json  # noqa: E402


def test_entity_context_lists_referenced_entities() -> None:
    block = build_entity_context(
        UserRef(5, "alice", nickname="Ali"),
        users=[UserRef(6, "bob")],
        roles=[RoleRef(3, "Staff")],
        channels=[ChannelRef(20, "general")],
        replying_to=ReferencedMessage("carol", "first\nsecond"),
    )

    assert block.startswith("\n[SYSTEM: ENTITY CONTEXT]")
    assert "The user speaking to you now is: Ali (ID: 5)" in block
    assert "- @bob: <@6>" in block
    assert "- @Staff: <@&3>" in block
    assert "- #general: <#20>" in block
    assert 'User is replying to message by @carol:\n"first second"' in block
    assert "[[SEND:<#ChannelID>:Your Message Content]]" in block
    assert "[SYSTEM: FRIENDLY NICKNAMES]" in block
    assert "[SYSTEM: IMAGE ATTACHED]" not in block


def test_image_note_only_when_images_attached() -> None:
    block = build_entity_context(UserRef(5, "alice"), has_images=True)
    assert "[SYSTEM: IMAGE ATTACHED]" in block
    assert "Users:" not in block


def test_system_prompt_is_persona_followed_by_context() -> None:
    assert build_system_prompt("Be kind.", "\n[ctx]\n") == "Be kind.\n[ctx]\n"


def test_user_turn_and_attachment_formats() -> None:
    assert format_user_turn("Ali", "hello") == "[Ali]: hello"
    assert format_text_attachment("notes.md", "x") == "\n\n[Attached File 'notes.md']:\n```\nx\n```"


def test_loader_merges_override_and_reloads_on_change(tmp_path: Path) -> None:
    clear_prompt_cache()
    defaults = {"header": "default", "lines": ["a"], "nested": {"x": 1, "y": 2}}

    assert load_prompt_json("missing.json", defaults, directory=tmp_path) == defaults

    path = tmp_path / "context.json"
    path.write_text(json.dumps({"header": "custom", "nested": {"y": 3}}), encoding="utf-8")
    merged = load_prompt_json("context.json", defaults, directory=tmp_path)
    assert merged == {"header": "custom", "lines": ["a"], "nested": {"x": 1, "y": 3}}

    path.write_text(json.dumps({"header": "again"}), encoding="utf-8")
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
    assert load_prompt_json("context.json", defaults, directory=tmp_path)["header"] == "again"


def test_loader_ignores_broken_override(tmp_path: Path) -> None:
    clear_prompt_cache()
    (tmp_path / "context.json").write_text("[1, 2", encoding="utf-8")
    assert load_prompt_json("context.json", {"k": "v"}, directory=tmp_path) == {"k": "v"}
