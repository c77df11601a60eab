from __future__ import annotations

from .attachment_mixin import AttachmentMixin
from .command_mixin import CommandMixin
from .image_mixin import ImageMixin
from .message_mixin import MessageMixin
from .player_mixin import PlayerMixin
from .prompt_mixin import PromptMixin
from .reply_mixin import ReplyMixin


class DialogueMixin(
    MessageMixin,
    CommandMixin,
    PromptMixin,
    AttachmentMixin,
    ReplyMixin,
    PlayerMixin,
    ImageMixin,
):
    pass
