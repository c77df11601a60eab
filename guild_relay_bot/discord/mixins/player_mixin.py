from __future__ import annotations

import logging
import re

from ..common import RichBlock
from ..replies import typing_indicator
from ...errors import RelayError
from ...services.player_lookup import PlayerProfile, stove_level_display

logger = logging.getLogger("guild_relay_bot")

PLAYER_ID_RE = re.compile(
    r"(?:player\s*id|siapa\s*player|cek\s*player|player|cek\s*akun|cek\s*id)\s*(\d+)",
    re.IGNORECASE,
)
PROFILE_COLOUR = 0x2B2D31
RULE = "─" * 24


def find_player_id(text: str) -> int | None:
    match = PLAYER_ID_RE.search(text)
    if match is None:
        return None
    return int(match.group(1))


def build_player_block(player: PlayerProfile) -> RichBlock:
    description = "\n".join(
        [
            f"👤 **{player.nickname}**",
            RULE,
            f"🆔 **FID:** {player.fid}",
            f"🔥 **Furnace Level:** {stove_level_display(player.stove_lv)}",
            f"🌍 **State:** {player.kid}",
            RULE,
        ]
    )
    return RichBlock(
        description=description,
        colour=PROFILE_COLOUR,
        thumbnail_url=player.stove_lv_content,
        image_url=player.avatar_image,
    )


class PlayerMixin:
    async def _reply_player_profile(self, player_id: int, replies) -> None:
        try:
            async with typing_indicator(replies):
                player = await self.player_lookup.fetch_player(player_id)
        except RelayError as exc:
            logger.warning("Player lookup failed for fid=%s: %s", player_id, exc)
            await replies.reply(f"❌ Failed to fetch player data: {exc}")
            return
        logger.info("[player] fid=%s nickname=%s", player.fid, player.nickname)
        await replies.send_rich(build_player_block(player))
