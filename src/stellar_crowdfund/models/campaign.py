"""Campaign records as stored by the crowdfund contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Campaign:
    """A crowdfunding campaign decoded from get_campaign()."""

    id: int
    creator: str  # Stellar address
    title: str
    description: str
    target: int  # stroops
    deadline: int  # unix seconds
    raised: int = 0  # stroops
    claimed: bool = False

    @property
    def remaining(self) -> int:
        """Stroops still needed to reach the target (never negative)."""
        return max(self.target - self.raised, 0)

    @property
    def is_funded(self) -> bool:
        return self.raised >= self.target

    def is_expired(self, now: float) -> bool:
        return self.deadline < now


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the clock reading at which it was stored."""

    value: T
    stored_at: float

    def is_valid(self, now: float, ttl: float) -> bool:
        return now - self.stored_at < ttl
