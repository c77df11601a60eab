from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Union

CHAT_MODELS = (
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-2.5-pro",
    "gemini-2.5-flash-thinking",
    "gemini-3-flash",
    "gemini-3-pro-high",
    "gemini-3-pro-low",
)
IMAGE_MODELS = ("gemini-3-pro-image",)
IMAGE_SIZE_NAMES = ("square", "portrait", "landscape")


@dataclass(frozen=True, slots=True)
class ToggleListening:
    pass


@dataclass(frozen=True, slots=True)
class ToggleSharedScope:
    pass


@dataclass(frozen=True, slots=True)
class ToggleSecondaryTrigger:
    pass


@dataclass(frozen=True, slots=True)
class SetPersona:
    text: str


@dataclass(frozen=True, slots=True)
class SetChatModel:
    name: str


@dataclass(frozen=True, slots=True)
class SetImageModel:
    name: str


@dataclass(frozen=True, slots=True)
class ForgetGuild:
    pass


@dataclass(frozen=True, slots=True)
class ShowStatus:
    pass


@dataclass(frozen=True, slots=True)
class Imagine:
    prompt: str
    size: str = "square"
    count: int = 1


@dataclass(frozen=True, slots=True)
class CommandUsage:
    """A recognised command with unusable arguments; ``text`` is the reply."""

    text: str


SettingsCommand = Union[
    ToggleListening,
    ToggleSharedScope,
    ToggleSecondaryTrigger,
    SetPersona,
    SetChatModel,
    SetImageModel,
    ForgetGuild,
    ShowStatus,
]
Command = Union[SettingsCommand, Imagine, CommandUsage]

_TOGGLES = {
    "listen": ToggleListening(),
    "shared": ToggleSharedScope(),
    "keyword": ToggleSecondaryTrigger(),
    "forget": ForgetGuild(),
    "status": ShowStatus(),
}


def _parse_imagine(label: str, arguments: str) -> Imagine | CommandUsage:
    usage = CommandUsage(
        f"Usage: `{label} [--size {'|'.join(IMAGE_SIZE_NAMES)}] [--count N] <prompt>`"
    )
    try:
        tokens = shlex.split(arguments)
    except ValueError:
        tokens = arguments.split()

    size = "square"
    count = 1
    words: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token in {"--size", "--count"} and index + 1 < len(tokens):
            value = tokens[index + 1]
            if token == "--size":
                if value.lower() not in IMAGE_SIZE_NAMES:
                    return usage
                size = value.lower()
            else:
                try:
                    count = max(1, int(value))
                except ValueError:
                    return usage
            index += 2
            continue
        words.append(token)
        index += 1

    prompt = " ".join(words).strip()
    if not prompt:
        return usage
    return Imagine(prompt=prompt, size=size, count=count)


def parse_command(raw: str, prefix: str) -> Command | None:
    """Parse ``<prefix>name args``; ``None`` means the text is not a command."""
    text = raw.strip()
    prefix = prefix.strip()
    if not prefix or not text.startswith(prefix):
        return None

    head, _, arguments = text[len(prefix) :].partition(" ")
    name = head.strip().lower()
    arguments = arguments.strip()
    label = f"{prefix}{name}"

    if name in _TOGGLES:
        return _TOGGLES[name]
    if name == "persona":
        if not arguments:
            return CommandUsage(f"Usage: `{label} <system prompt>`")
        return SetPersona(text=arguments)
    if name in {"model", "imagemodel"}:
        choices = CHAT_MODELS if name == "model" else IMAGE_MODELS
        if arguments not in choices:
            return CommandUsage(f"Usage: `{label} <{'|'.join(choices)}>`")
        return SetChatModel(name=arguments) if name == "model" else SetImageModel(name=arguments)
    if name == "imagine":
        return _parse_imagine(label, arguments)
    return None
