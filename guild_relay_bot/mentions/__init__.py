from .cache import GuildMentionCache, MentionCache
from .substitution import MentionReplacement, apply_replacements

__all__ = ["GuildMentionCache", "MentionCache", "MentionReplacement", "apply_replacements"]
