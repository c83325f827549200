"""In-memory session storage."""

from stellar_crowdfund.storage.cache import CACHE_TTL_SECONDS, CampaignCache

__all__ = ["CampaignCache", "CACHE_TTL_SECONDS"]
