from __future__ import annotations

import base64
import logging
from typing import Any

from ..common import AttachmentRef, MessageEvent
from ...errors import RelayError
from ...prompts.context import format_text_attachment

logger = logging.getLogger("guild_relay_bot")

TEXT_EXTENSIONS = (".rs", ".js", ".ts", ".json", ".md", ".txt")


def is_text_attachment(attachment: AttachmentRef) -> bool:
    content_type = (attachment.content_type or "").lower()
    if content_type.startswith("text/"):
        return True
    return attachment.filename.lower().endswith(TEXT_EXTENSIONS)


def is_image_attachment(attachment: AttachmentRef) -> bool:
    return (attachment.content_type or "").lower().startswith("image/")


def image_mime_type(attachment: AttachmentRef, header: str | None = None) -> str:
    for candidate in (attachment.content_type, header):
        value = (candidate or "").split(";", 1)[0].strip().lower()
        if value.startswith("image/"):
            return value
    return "image/png" if attachment.filename.lower().endswith(".png") else "image/jpeg"


class AttachmentMixin:
    async def _collect_attachments(self, event: MessageEvent) -> tuple[str, list[AttachmentRef]]:
        """Inline small text files into the content and pick out images to embed later."""
        content = event.raw_content
        images: list[AttachmentRef] = []
        for attachment in event.attachments:
            if is_text_attachment(attachment):
                if attachment.size >= self.settings.text_attachment_max_bytes:
                    continue
                try:
                    text = await self.attachments.fetch_text(
                        attachment.url,
                        self.settings.text_attachment_max_bytes,
                    )
                except RelayError as exc:
                    logger.warning("Text attachment skipped (%s): %s", attachment.filename, exc)
                    continue
                content += format_text_attachment(attachment.filename, text)
            elif is_image_attachment(attachment):
                if attachment.size < self.settings.image_attachment_max_bytes:
                    images.append(attachment)
        return content, images

    async def _image_part(self, attachment: AttachmentRef) -> dict[str, Any]:
        data, header = await self.attachments.fetch_bytes(
            attachment.url,
            self.settings.image_attachment_max_bytes,
        )
        mime = image_mime_type(attachment, header)
        encoded = base64.b64encode(data).decode("ascii")
        return {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{encoded}"}}
