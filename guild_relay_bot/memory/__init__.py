from .models import ChannelPolicy, ConversationTurn, GuildPolicy
from .store import MemoryStore

__all__ = ["ChannelPolicy", "ConversationTurn", "GuildPolicy", "MemoryStore"]
