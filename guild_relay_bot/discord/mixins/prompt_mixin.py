from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from ..common import AttachmentRef, ChannelRef, MessageEvent, truncate
from ...memory.models import ChannelPolicy, ConversationTurn, GuildPolicy
from ...prompts.context import build_entity_context, build_system_prompt, format_user_turn

logger = logging.getLogger("guild_relay_bot")

CHANNEL_TOKEN_RE = re.compile(r"<#(\d+)>")


class PromptMixin:
    async def _mentioned_channels(self, raw_content: str) -> list[ChannelRef]:
        channel_ids: list[int] = []
        for match in CHANNEL_TOKEN_RE.finditer(raw_content):
            channel_id = int(match.group(1))
            if channel_id not in channel_ids:
                channel_ids.append(channel_id)
        return [ChannelRef(id=channel_id, name=await self.directory.channel_name(channel_id)) for channel_id in channel_ids]

    async def _save_user_turn(self, event: MessageEvent, content: str) -> None:
        stored = format_user_turn(event.author_display_name, content)
        await self.memory.append_turn(
            ConversationTurn(
                guild_id=event.guild_key,
                channel_id=str(event.channel_id),
                user_id=str(event.author_id),
                author_name=event.author_display_name,
                role="user",
                content=stored,
            )
        )
        logger.info(
            "[msg.user] channel=%s user=%s text=\"%s\"",
            event.channel_id,
            event.author_display_name,
            truncate(content, 120),
        )

    async def _assemble_context(
        self,
        event: MessageEvent,
        guild_policy: GuildPolicy,
        channel_policy: ChannelPolicy,
    ) -> list[dict[str, Any]]:
        """Persist the incoming turn and build the model-facing message list."""
        content, images = await self._collect_attachments(event)
        await self._save_user_turn(event, content)

        scope = None if channel_policy.shared_scope else str(event.author_id)
        history = await self.memory.fetch_history(str(event.channel_id), scope, self.settings.history_limit)

        entity_context = build_entity_context(
            event.author,
            users=event.mentioned_users,
            roles=event.mentioned_roles,
            channels=await self._mentioned_channels(event.raw_content),
            replying_to=event.referenced_message,
            has_images=bool(images),
        )
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": build_system_prompt(guild_policy.system_prompt, entity_context)}
        ]
        messages.extend({"role": turn.role, "content": turn.content} for turn in history)

        if images:
            await self._attach_images(messages, images)
        return messages

    async def _attach_images(self, messages: list[dict[str, Any]], images: list[AttachmentRef]) -> None:
        last = messages[-1]
        if last["role"] != "user" or not isinstance(last["content"], str):
            return

        results = await asyncio.gather(
            *(self._image_part(attachment) for attachment in images),
            return_exceptions=True,
        )
        parts: list[dict[str, Any]] = [{"type": "text", "text": last["content"]}]
        for attachment, result in zip(images, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning("Image attachment skipped (%s): %s", attachment.filename, result)
                continue
            parts.append(result)
        messages[-1] = {"role": "user", "content": parts}
