from .attachment_mixin import AttachmentMixin
from .command_mixin import CommandMixin
from .dialogue_mixin import DialogueMixin
from .identity_mixin import IdentityMixin
from .image_mixin import ImageMixin
from .message_mixin import MessageMixin
from .player_mixin import PlayerMixin
from .prompt_mixin import PromptMixin
from .reply_mixin import ReplyMixin

__all__ = [
    "AttachmentMixin",
    "CommandMixin",
    "DialogueMixin",
    "IdentityMixin",
    "ImageMixin",
    "MessageMixin",
    "PlayerMixin",
    "PromptMixin",
    "ReplyMixin",
]
