"""Soroban event poller - turns getEvents into a push-like event stream."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Awaitable, Callable, Union

from stellar_crowdfund.interfaces.ledger import LedgerClient
from stellar_crowdfund.models.events import ContractEvent
from stellar_crowdfund.stellar.codec import decode_event

log = logging.getLogger(__name__)

BatchCallback = Callable[[list[ContractEvent]], Union[None, Awaitable[None]]]

DEFAULT_POLL_INTERVAL = 5.0  # seconds
DEFAULT_LOOKBACK = 1000  # ledgers
DEFAULT_LIMIT = 20


class EventFeedPoller:
    """Polls Soroban RPC for crowdfund contract events.

    Keeps a single cursor: the ledger to resume from. It advances to
    ``last ledger + 1`` after every non-empty batch and stays put on an
    empty one. Each batch is delivered once, in ledger order; deduplication
    across batches is the consumer's job.

    Stopping is cooperative. A poll already in flight completes, so the
    callback may run once more after stop is requested.
    """

    def __init__(
        self,
        client: LedgerClient,
        contract_id: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        lookback: int = DEFAULT_LOOKBACK,
        limit: int = DEFAULT_LIMIT,
        start_ledger: int | None = None,
    ) -> None:
        self._client = client
        self._contract_id = contract_id
        self._interval = interval
        self._lookback = lookback
        self._limit = limit
        self._cursor: int | None = start_ledger
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def cursor(self) -> int | None:
        return self._cursor

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> list[ContractEvent]:
        """Fetch the next batch and advance the cursor.

        On the first call (no cursor) starts ``lookback`` ledgers behind the
        latest one. Transport errors propagate and leave the cursor alone.
        """
        start = self._cursor
        if start is None:
            latest = await self._client.get_latest_ledger_sequence()
            start = max(latest - self._lookback, 1)
            log.info("No cursor, starting %d ledgers back at %d", self._lookback, start)

        raw_events = await self._client.get_events(start, self._contract_id, self._limit)
        if not raw_events:
            return []

        raw_events = sorted(raw_events, key=lambda e: e.ledger)
        captured_at = time.time()
        events: list[ContractEvent] = []
        for raw in raw_events:
            if not raw.in_successful_contract_call:
                continue
            event = decode_event(raw, captured_at)
            if event is not None:
                events.append(event)

        # Malformed events still move the cursor so one bad event cannot stall the feed
        self._cursor = raw_events[-1].ledger + 1

        if events:
            log.info("Polled %d events (cursor: %d)", len(events), self._cursor)
        return events

    async def run(self, on_batch: BatchCallback) -> None:
        """Poll until stop() is called, handing each non-empty batch to ``on_batch``."""
        while not self._stop.is_set():
            try:
                events = await self.poll_once()
                if events:
                    result = on_batch(events)
                    if inspect.isawaitable(result):
                        await result
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log.error("Event polling error: %s", exc)

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

    def start(self, on_batch: BatchCallback, interval: float | None = None) -> Callable[[], None]:
        """Run the loop as a background task. Returns a function that stops it."""
        if self.running:
            raise RuntimeError("event poller is already running")
        if interval is not None:
            self._interval = interval
        self._stop.clear()
        self._task = asyncio.create_task(self.run(on_batch))
        log.info("Event polling started (interval=%.1fs)", self._interval)
        return self.stop

    def stop(self) -> None:
        """Request the loop to stop at its next iteration."""
        self._stop.set()

    async def aclose(self) -> None:
        """Stop the loop and wait for the in-flight iteration to finish."""
        self.stop()
        if self._task is not None:
            await self._task
            self._task = None
            log.info("Event polling stopped")
