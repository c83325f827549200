"""API components - session facade and event feed buffer."""

from stellar_crowdfund.api.feed import EventFeed
from stellar_crowdfund.api.service import CrowdfundService

__all__ = ["CrowdfundService", "EventFeed"]
