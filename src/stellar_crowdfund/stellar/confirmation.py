"""Confirmation poller - turns a submitted hash into a terminal verdict."""

from __future__ import annotations

import asyncio
import logging

from stellar_crowdfund.errors import ConfirmationTimeoutError, OnChainFailedError
from stellar_crowdfund.interfaces.ledger import LedgerClient
from stellar_crowdfund.models.records import LedgerTxStatus, TxStatusResult

log = logging.getLogger(__name__)

CONFIRM_INTERVAL = 2.0  # seconds
CONTRACT_CALL_ATTEMPTS = 20
PAYMENT_ATTEMPTS = 10


class ConfirmationPoller:
    """Polls getTransaction at a fixed interval until a verdict or the cap.

    The status is queried once right after submission, then re-queried up
    to ``max_attempts`` times while it stays not_found. There is no backoff.
    """

    def __init__(self, client: LedgerClient, interval: float = CONFIRM_INTERVAL) -> None:
        self._client = client
        self._interval = interval

    async def wait(self, tx_hash: str, max_attempts: int) -> TxStatusResult:
        """Wait for ``tx_hash`` to reach a verdict.

        Returns the success status. Raises OnChainFailedError on a failed
        verdict and ConfirmationTimeoutError if still not_found at the cap.
        """
        result = await self._client.get_transaction_status(tx_hash)
        attempts = 0
        while result.status == LedgerTxStatus.NOT_FOUND and attempts < max_attempts:
            await asyncio.sleep(self._interval)
            result = await self._client.get_transaction_status(tx_hash)
            attempts += 1
            log.debug("tx %s status %s (attempt %d/%d)",
                      tx_hash[:16], result.status.value, attempts, max_attempts)

        if result.status == LedgerTxStatus.SUCCESS:
            log.info("tx %s confirmed", tx_hash[:16])
            return result
        if result.status == LedgerTxStatus.NOT_FOUND:
            log.warning("tx %s not confirmed after %d attempts", tx_hash[:16], attempts)
            raise ConfirmationTimeoutError(tx_hash, attempts)

        log.error("tx %s failed on-chain (code=%s)", tx_hash[:16], result.code)
        raise OnChainFailedError(tx_hash, result.code)
