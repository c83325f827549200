"""In-memory TTL cache for campaign records and the campaign count."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from stellar_crowdfund.models.campaign import CacheEntry, Campaign

log = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 30.0


def _check_id(campaign_id: int) -> None:
    if isinstance(campaign_id, bool) or not isinstance(campaign_id, int):
        raise TypeError(f"campaign id must be an int, got {type(campaign_id).__name__}")
    if campaign_id < 0:
        raise ValueError(f"campaign id must be >= 0, got {campaign_id}")


class CampaignCache:
    """Bounded-staleness store for campaign reads.

    An entry is served only while ``now - stored_at < ttl``. Validity is
    checked on every read; stale entries are treated as absent and are only
    removed by an explicit invalidation or overwrite. All methods hold one
    lock, so the TTL check and the return (or a write) are never interleaved
    with another thread's invalidation.

    A fetch runs outside the lock, so readers record ``generation`` before
    fetching and store through ``set_campaign_if`` / ``set_count_if``. Any
    invalidation in between bumps the generation and the late write is
    dropped.

    One instance is built per session and shared by the reader, the
    orchestrator and anything else that reads campaigns.
    """

    def __init__(
        self,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._campaigns: dict[int, CacheEntry[Campaign]] = {}
        self._count: CacheEntry[int] | None = None
        self._generation = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def generation(self) -> int:
        """Bumped by every invalidation. Pass it to the ``*_if`` setters."""
        with self._lock:
            return self._generation

    # ── Campaigns ──────────────────────────────────────────

    def get_campaign(self, campaign_id: int) -> Campaign | None:
        _check_id(campaign_id)
        with self._lock:
            entry = self._campaigns.get(campaign_id)
            if entry is not None and entry.is_valid(self._clock(), self._ttl):
                return entry.value
            return None

    def set_campaign(self, campaign_id: int, campaign: Campaign) -> None:
        _check_id(campaign_id)
        with self._lock:
            self._campaigns[campaign_id] = CacheEntry(campaign, self._clock())

    def set_campaign_if(self, campaign_id: int, campaign: Campaign, generation: int) -> bool:
        """Store ``campaign`` unless an invalidation happened since ``generation``."""
        _check_id(campaign_id)
        with self._lock:
            if generation != self._generation:
                log.debug("Dropped stale read of campaign %d", campaign_id)
                return False
            self._campaigns[campaign_id] = CacheEntry(campaign, self._clock())
            return True

    # ── Count ──────────────────────────────────────────────

    def get_count(self) -> int | None:
        with self._lock:
            if self._count is not None and self._count.is_valid(self._clock(), self._ttl):
                return self._count.value
            return None

    def set_count(self, count: int) -> None:
        with self._lock:
            self._count = CacheEntry(count, self._clock())

    def set_count_if(self, count: int, generation: int) -> bool:
        with self._lock:
            if generation != self._generation:
                log.debug("Dropped stale read of campaign count")
                return False
            self._count = CacheEntry(count, self._clock())
            return True

    # ── Invalidation ───────────────────────────────────────

    def invalidate_all(self) -> None:
        """Drop every campaign and the count (e.g. after a create)."""
        with self._lock:
            self._campaigns.clear()
            self._count = None
            self._generation += 1
        log.debug("Campaign cache cleared")

    def invalidate_campaign(self, campaign_id: int) -> None:
        """Drop one campaign and, conservatively, the count as well."""
        _check_id(campaign_id)
        with self._lock:
            self._campaigns.pop(campaign_id, None)
            self._count = None
            self._generation += 1
        log.debug("Campaign %d invalidated", campaign_id)
