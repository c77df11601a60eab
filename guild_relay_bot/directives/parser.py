from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

OPENER = "[[SEND:"
CLOSER = "]]"
_ESCAPABLE = (":", "]")

_CHANNEL_REF_RE = re.compile(r"<#(\d+)>|(\d+)")


@dataclass(frozen=True, slots=True)
class ChannelIdTarget:
    channel_id: int


@dataclass(frozen=True, slots=True)
class ChannelNameTarget:
    name: str


DirectiveTarget = Union[ChannelIdTarget, ChannelNameTarget]


def classify_target(reference: str) -> DirectiveTarget:
    match = _CHANNEL_REF_RE.fullmatch(reference.strip())
    if match is not None:
        return ChannelIdTarget(int(match.group(1) or match.group(2)))
    return ChannelNameTarget(reference.strip().lstrip("#").strip())


@dataclass(frozen=True, slots=True)
class Directive:
    start: int
    end: int
    target_reference: str
    body: str

    @property
    def span(self) -> tuple[int, int]:
        return self.start, self.end

    @property
    def target(self) -> DirectiveTarget:
        return classify_target(self.target_reference)


def _scan_until(text: str, start: int, stop: str) -> tuple[str, int] | None:
    """Read an escape-aware field from ``start`` up to the first unescaped ``stop``.

    Returns the unescaped field and the index where ``stop`` begins. A target field
    (``stop == ":"``) fails when a closer shows up before the separator.
    """
    out: list[str] = []
    index = start
    while index < len(text):
        char = text[index]
        # A backslash right before the closer is literal: ``\]]`` ends the field.
        if (
            char == "\\"
            and index + 1 < len(text)
            and text[index + 1] in _ESCAPABLE
            and not text.startswith(CLOSER, index + 1)
        ):
            out.append(text[index + 1])
            index += 2
            continue
        if text.startswith(stop, index):
            return "".join(out), index
        if stop != CLOSER and text.startswith(CLOSER, index):
            return None
        out.append(char)
        index += 1
    return None


def parse_directives(text: str) -> list[Directive]:
    """Find every ``[[SEND:<target>:<body>]]`` in textual order, non-overlapping."""
    directives: list[Directive] = []
    pos = 0
    while True:
        start = text.find(OPENER, pos)
        if start < 0:
            break

        target_scan = _scan_until(text, start + len(OPENER), ":")
        if target_scan is None or not target_scan[0].strip():
            pos = start + 1
            continue
        target, separator = target_scan

        body_scan = _scan_until(text, separator + 1, CLOSER)
        if body_scan is None:
            break
        body, closer = body_scan
        end = closer + len(CLOSER)

        directives.append(
            Directive(
                start=start,
                end=end,
                target_reference=target.strip(),
                body=body.strip(),
            )
        )
        pos = end
    return directives


def remove_spans(text: str, directives: list[Directive]) -> str:
    for directive in sorted(directives, key=lambda item: item.start, reverse=True):
        text = text[: directive.start] + text[directive.end :]
    return text


def strip_directives(text: str) -> str:
    """Remove all directive spans; repeats until no directive text is left behind."""
    directives = parse_directives(text)
    while directives:
        text = remove_spans(text, directives)
        directives = parse_directives(text)
    return text
