from .attachment_fetcher import AttachmentFetcher
from .completion_client import CompletionClient
from .player_lookup import PlayerLookupClient, PlayerProfile

__all__ = ["AttachmentFetcher", "CompletionClient", "PlayerLookupClient", "PlayerProfile"]
