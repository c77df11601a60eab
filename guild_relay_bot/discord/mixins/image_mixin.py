from __future__ import annotations

import base64
import binascii
import logging
import re

from ..common import RichBlock, RichField, truncate
from ..commands import Imagine
from ..replies import typing_indicator
from ...errors import GENERIC_FAILURE_MESSAGE, RelayError
from ...services.completion_client import IMAGE_SIZES

logger = logging.getLogger("guild_relay_bot")

IMAGE_COLOUR = 0x9B59B6
GENERATED_IMAGE_FILENAME = "generated_image.png"
MARKDOWN_IMAGE_RE = re.compile(r"^!\[[^\]]*\]\(([^)]*)\)")


def unwrap_image_content(content: str) -> str:
    text = content.strip()
    match = MARKDOWN_IMAGE_RE.match(text)
    return match.group(1).strip() if match else text


def decode_image_payload(content: str) -> bytes | None:
    payload = content.split(",", 1)[1] if "," in content else content
    payload = payload.replace("\n", "").replace("\r", "")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None


class ImageMixin:
    def _image_block(self, command: Imagine, model: str, size: str, requested_by: str) -> RichBlock:
        return RichBlock(
            title="🎨 Image Generated",
            colour=IMAGE_COLOUR,
            fields=[
                RichField("Prompt", truncate(command.prompt, 1000)),
                RichField("Model", model, inline=True),
                RichField("Size", size, inline=True),
            ],
            footer=f"Requested by {requested_by}" if requested_by else "",
        )

    async def _run_imagine(self, command: Imagine, guild_key: str, requested_by: str, replies) -> None:
        policy = await self.memory.get_guild_policy(guild_key)
        model = policy.image_model or self.settings.default_image_model
        size = IMAGE_SIZES[command.size]

        try:
            async with typing_indicator(replies):
                content = await self.completion.generate_image(model, command.prompt, size, command.count)
        except RelayError as exc:
            logger.warning("Image generation failed (model=%s): %s", model, exc)
            await replies.reply(exc.user_message)
            return

        image = unwrap_image_content(content)
        block = self._image_block(command, model, size, requested_by)
        if image.startswith(("http://", "https://")):
            block.image_url = image
            await replies.send_rich(block)
            return

        data = decode_image_payload(image)
        if data is None:
            logger.warning("Image generation returned neither a URL nor base64 data")
            await replies.reply(GENERIC_FAILURE_MESSAGE)
            return
        block.image_url = f"attachment://{GENERATED_IMAGE_FILENAME}"
        await replies.send_file(data, GENERATED_IMAGE_FILENAME, block)
