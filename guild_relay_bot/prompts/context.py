from __future__ import annotations

from typing import Any, Iterable

from ..discord.common import ChannelRef, ReferencedMessage, RoleRef, UserRef
from .json_loader import load_prompt_json

_DEFAULTS: dict[str, Any] = {
    "entity_context_header": "[SYSTEM: ENTITY CONTEXT]",
    "current_author_template": (
        "[SYSTEM: CURRENT AUTHOR]\n"
        "The user speaking to you now is: {name} (ID: {user_id})\n"
        "Address them by their name: {name}"
    ),
    "users_header": "Users:",
    "roles_header": "Roles:",
    "channels_header": "Channels:",
    "user_line_template": "- @{name}: {token}",
    "role_line_template": "- @{name}: {token}",
    "channel_line_template": "- #{name}: {token}",
    "replying_to_template": (
        "[SYSTEM: USER REPLYING TO]\n"
        "User is replying to message by @{author}:\n\"{content}\""
    ),
    "command_lines": [
        "[SYSTEM: COMMANDS]",
        "To send a message to a specific channel, output:",
        "[[SEND:<#ChannelID>:Your Message Content]]",
        "Example: [[SEND:<#12345>:Hello World]]",
        "A literal ':' or ']' inside the message can be written as '\\:' or '\\]'.",
    ],
    "nickname_lines": [
        "[SYSTEM: FRIENDLY NICKNAMES]",
        "When addressing users, use their friendly nicknames for a casual tone:",
        "- Names containing 'chyaaa' or 'cyaaa' -> call them 'Cyaaa'",
        "- Names containing 'kunnn' or 'kun' -> call them 'Kun'",
        "- Names containing 'baemon' or 'mon' -> call them 'Mon'",
        "- Names containing 'pecel' or 'lele' or 'cel' -> call them 'Cel'",
        "- Names containing 'cylaa' or 'cyl' -> call them 'Cyl'",
        "- Names containing 'dostzy' -> call them 'Dos'",
        "- For other names, use a shortened friendly version (first part or nickname).",
    ],
    "image_attached_note": (
        "[SYSTEM: IMAGE ATTACHED]\n"
        "User has attached images to this message. Use your vision capabilities to analyze them."
    ),
    "text_attachment_template": "\n\n[Attached File '{filename}']:\n```\n{text}\n```",
    "user_turn_template": "[{author}]: {content}",
}


def _cfg() -> dict[str, Any]:
    return load_prompt_json("context.json", _DEFAULTS)


def _template(cfg: dict[str, Any], key: str) -> str:
    value = cfg.get(key)
    return str(value) if isinstance(value, str) else str(_DEFAULTS[key])


def _lines(cfg: dict[str, Any], key: str) -> list[str]:
    value = cfg.get(key)
    items = value if isinstance(value, list) else _DEFAULTS[key]
    return [str(item) for item in items if str(item).strip()]


def format_user_turn(author: str, content: str) -> str:
    return _template(_cfg(), "user_turn_template").format(author=author, content=content)


def format_text_attachment(filename: str, text: str) -> str:
    return _template(_cfg(), "text_attachment_template").format(filename=filename, text=text)


def build_entity_context(
    author: UserRef,
    *,
    users: Iterable[UserRef] = (),
    roles: Iterable[RoleRef] = (),
    channels: Iterable[ChannelRef] = (),
    replying_to: ReferencedMessage | None = None,
    has_images: bool = False,
) -> str:
    """Render the block appended to the persona prompt for one message.

    Sections: current author, referenced users/roles/channels, the replied-to
    message, the send-directive syntax, nickname rules and the image note.
    """
    cfg = _cfg()
    sections: list[str] = [
        _template(cfg, "entity_context_header"),
        _template(cfg, "current_author_template").format(name=author.display_name, user_id=author.id),
    ]

    mention_lines: list[str] = []
    user_list = list(users)
    if user_list:
        mention_lines.append(_template(cfg, "users_header"))
        line = _template(cfg, "user_line_template")
        mention_lines.extend(line.format(name=user.display_name, token=user.mention) for user in user_list)
    role_list = list(roles)
    if role_list:
        mention_lines.append(_template(cfg, "roles_header"))
        line = _template(cfg, "role_line_template")
        mention_lines.extend(line.format(name=role.name, token=role.mention) for role in role_list)
    channel_list = list(channels)
    if channel_list:
        mention_lines.append(_template(cfg, "channels_header"))
        line = _template(cfg, "channel_line_template")
        mention_lines.extend(line.format(name=channel.name, token=channel.mention) for channel in channel_list)
    if mention_lines:
        sections.append("\n".join(mention_lines))

    if replying_to is not None:
        sections.append(
            _template(cfg, "replying_to_template").format(
                author=replying_to.author_name,
                content=replying_to.content.replace("\n", " "),
            )
        )

    sections.append("\n".join(_lines(cfg, "command_lines")))
    sections.append("\n".join(_lines(cfg, "nickname_lines")))
    if has_images:
        sections.append(_template(cfg, "image_attached_note"))

    return "\n" + "\n\n".join(section for section in sections if section) + "\n"


def build_system_prompt(persona: str, entity_context: str) -> str:
    return f"{persona}{entity_context}"
