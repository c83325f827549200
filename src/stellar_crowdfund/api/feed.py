"""Bounded, newest-first buffer of contract events for display."""

from __future__ import annotations

from stellar_crowdfund.models.events import ContractEvent

MAX_FEED_EVENTS = 50


class EventFeed:
    """Merges poller batches into one display list.

    Batches arrive oldest-first; each is prepended in reverse so the whole
    list reads newest-first. Events already seen (same id) are dropped and
    the list is capped at ``max_events``.
    """

    def __init__(self, max_events: int = MAX_FEED_EVENTS) -> None:
        self._max = max_events
        self._events: list[ContractEvent] = []
        self._seen: set[str] = set()

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> list[ContractEvent]:
        return list(self._events)

    def extend(self, batch: list[ContractEvent]) -> list[ContractEvent]:
        """Add a batch. Returns the events that were new."""
        fresh = []
        for event in batch:
            if event.id and event.id in self._seen:
                continue
            if event.id:
                self._seen.add(event.id)
            fresh.append(event)

        self._events = list(reversed(fresh)) + self._events
        for dropped in self._events[self._max:]:
            self._seen.discard(dropped.id)
        del self._events[self._max:]
        return fresh

    def clear(self) -> None:
        self._events.clear()
        self._seen.clear()
