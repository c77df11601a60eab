from __future__ import annotations

import dataclasses
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from guild_relay_bot.config import Settings  # noqa: E402


_ENV_KEYS = (
    "DISCORD_TOKEN",
    "HISTORY_LIMIT",
    "MAX_HISTORY_MESSAGES",
    "TRIGGER_KEYWORD",
    "COMPLETION_BASE_URL",
    "PROXY_BASE_URL",
    "PLAIN_REPLY_MAX_CHARS",
    "RICH_CHUNK_MAX_CHARS",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv(f"\ufeff{key}", raising=False)
    return monkeypatch


def test_defaults_when_env_is_empty(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings.from_env()
    assert settings.history_limit == 20
    assert settings.trigger_keyword == "din"
    assert settings.completion_base_url == "http://127.0.0.1:8045"
    assert settings.plain_reply_max_chars == 2000
    assert settings.rich_chunk_max_chars == 4000


def test_malformed_numbers_fall_back_and_aliases_are_read(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("HISTORY_LIMIT", "lots")
    clean_env.setenv("PROXY_BASE_URL", "http://proxy:9000")
    clean_env.setenv("\ufeffTRIGGER_KEYWORD", "bot")
    settings = Settings.from_env()
    assert settings.history_limit == 20
    assert settings.completion_base_url == "http://proxy:9000"
    assert settings.trigger_keyword == "bot"


def test_token_is_cleaned(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("DISCORD_TOKEN", ' Bot "abc.def" ')
    assert Settings.from_env().discord_token == "abc.def"


def test_validate_rejects_missing_token(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValueError, match="DISCORD_TOKEN"):
        Settings.from_env().validate()


@pytest.mark.parametrize(
    ("field", "value", "variable"),
    [
        ("plain_reply_max_chars", 2001, "PLAIN_REPLY_MAX_CHARS"),
        ("rich_chunk_max_chars", 4096, "RICH_CHUNK_MAX_CHARS"),
        ("history_limit", 0, "HISTORY_LIMIT"),
        ("mention_member_limit", 5000, "MENTION_MEMBER_LIMIT"),
    ],
)
def test_validate_names_the_bad_variable(clean_env: pytest.MonkeyPatch, field: str, value: int, variable: str) -> None:
    settings = dataclasses.replace(Settings.from_env(), discord_token="token")
    settings.validate()
    broken = dataclasses.replace(settings, **{field: value})
    with pytest.raises(ValueError, match=variable):
        broken.validate()
