from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Sequence


@dataclass(frozen=True, slots=True)
class MentionReplacement:
    pattern: str
    token: str


def sort_replacements(entries: Iterable[MentionReplacement]) -> list[MentionReplacement]:
    """Drop blank and duplicate patterns, longest pattern first.

    Patterns compare case-insensitively; the first alias seen for a pattern wins.
    Equal lengths are ordered alphabetically so rebuilds are deterministic.
    """
    unique: dict[str, MentionReplacement] = {}
    for entry in entries:
        if len(entry.pattern) < 2 or not entry.token:
            continue
        key = entry.pattern.casefold()
        if key not in unique:
            unique[key] = entry
    return sorted(unique.values(), key=lambda item: (-len(item.pattern), item.pattern.casefold()))


@lru_cache(maxsize=4096)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    # The marker (@ or #) opens the match; a marker right after "<" belongs to an
    # existing mention token. The name must not run on into another word character.
    return re.compile(rf"(?<!<){re.escape(pattern)}(?!\w)", re.IGNORECASE)


def apply_replacements(text: str, replacements: Sequence[MentionReplacement]) -> str:
    if not text:
        return text
    for entry in replacements:
        if entry.pattern[0] not in text:
            continue
        text = compile_pattern(entry.pattern).sub(lambda _match, token=entry.token: token, text)
    return text
