"""EventFeed display buffer: ordering, dedupe and cap."""

from __future__ import annotations

from stellar_crowdfund.api.feed import EventFeed
from stellar_crowdfund.models.events import ContractEvent


def _event(ledger: int, event_id: str | None = None) -> ContractEvent:
    return ContractEvent(type="donate", ledger=ledger, id=event_id or f"evt-{ledger}")


def test_newest_first_across_batches():
    feed = EventFeed()
    feed.extend([_event(1), _event(2)])
    feed.extend([_event(3), _event(4)])
    assert [e.ledger for e in feed.events] == [4, 3, 2, 1]


def test_duplicates_dropped():
    feed = EventFeed()
    feed.extend([_event(1), _event(2)])
    fresh = feed.extend([_event(2), _event(3)])
    assert [e.ledger for e in fresh] == [3]
    assert len(feed) == 3


def test_capped_at_max_events():
    feed = EventFeed(max_events=50)
    feed.extend([_event(i) for i in range(60)])
    assert len(feed) == 50
    assert feed.events[0].ledger == 59
    assert feed.events[-1].ledger == 10


def test_evicted_event_can_reappear():
    feed = EventFeed(max_events=2)
    feed.extend([_event(1)])
    feed.extend([_event(2), _event(3)])
    assert [e.ledger for e in feed.events] == [3, 2]
    assert feed.extend([_event(1)])


def test_clear():
    feed = EventFeed()
    feed.extend([_event(1)])
    feed.clear()
    assert len(feed) == 0
    assert feed.extend([_event(1)])
