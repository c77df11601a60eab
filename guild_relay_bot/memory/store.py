from __future__ import annotations

from pathlib import Path

from .storage.policies import (
    DEFAULT_CHAT_MODEL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    MemoryPoliciesMixin,
)
from .storage.schema import MemorySchemaMixin
from .storage.turns import MemoryTurnsMixin


class MemoryStore(
    MemorySchemaMixin,
    MemoryTurnsMixin,
    MemoryPoliciesMixin,
):
    """Append-only conversation log plus guild/channel policy records."""

    backend_name = "sqlite"

    def __init__(
        self,
        db_path: Path,
        *,
        chat_model: str = DEFAULT_CHAT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        super().__init__(db_path)
        self.guild_policy_defaults = (chat_model, image_model, system_prompt)
