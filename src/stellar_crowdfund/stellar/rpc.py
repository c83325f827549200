"""Soroban RPC client - the only component that performs ledger I/O."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiohttp
from stellar_sdk import Account, SorobanServerAsync, TransactionEnvelope, xdr
from stellar_sdk.exceptions import AccountNotFoundException, BaseRequestError
from stellar_sdk.soroban_rpc import (
    EventFilter,
    EventFilterType,
    GetTransactionStatus,
    SendTransactionStatus,
)

from stellar_crowdfund.errors import AccountNotFoundError, CrowdfundError, NetworkError
from stellar_crowdfund.models.records import (
    LedgerTxStatus,
    RawEvent,
    SimulationResult,
    SubmitResult,
    SubmitStatus,
    TxStatusResult,
)

log = logging.getLogger(__name__)

_TX_STATUS_MAP = {
    GetTransactionStatus.SUCCESS: LedgerTxStatus.SUCCESS,
    GetTransactionStatus.NOT_FOUND: LedgerTxStatus.NOT_FOUND,
    GetTransactionStatus.FAILED: LedgerTxStatus.FAILED,
}


def _result_code(result_xdr: str | None) -> str | None:
    """Extract the TransactionResult code name (e.g. txFAILED) from XDR."""
    if not result_xdr:
        return None
    try:
        return xdr.TransactionResult.from_xdr(result_xdr).result.code.name
    except Exception:
        log.debug("Could not decode transaction result XDR")
        return None


class SorobanLedgerClient:
    """Implements LedgerClient over SorobanServerAsync.

    Each call opens its own RPC session and closes it on exit, so the client
    is stateless between calls and safe to share between the orchestrator
    and the event poller.
    """

    def __init__(self, rpc_url: str) -> None:
        self._rpc_url = rpc_url

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    @asynccontextmanager
    async def _session(self, op: str) -> AsyncIterator[SorobanServerAsync]:
        try:
            async with SorobanServerAsync(self._rpc_url) as server:
                yield server
        except CrowdfundError:
            raise
        except (BaseRequestError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            log.warning("RPC %s failed: %s", op, exc)
            raise NetworkError(f"RPC {op} failed: {exc}") from exc

    async def get_account(self, address: str) -> Account:
        async with self._session("getAccount") as server:
            try:
                return await server.load_account(address)
            except AccountNotFoundException as exc:
                raise AccountNotFoundError(address) from exc

    async def simulate(self, tx: TransactionEnvelope) -> SimulationResult:
        async with self._session("simulateTransaction") as server:
            response = await server.simulate_transaction(tx)

        if response.error:
            log.debug("Simulation error: %s", response.error)
            return SimulationResult(error=response.error, raw=response)

        retval = None
        if response.results:
            retval = response.results[0].xdr
        return SimulationResult(retval_xdr=retval, raw=response)

    async def assemble(
        self, tx: TransactionEnvelope, simulation: SimulationResult
    ) -> TransactionEnvelope:
        async with self._session("prepareTransaction") as server:
            return await server.prepare_transaction(tx, simulation.raw)

    async def submit(self, tx: TransactionEnvelope) -> SubmitResult:
        async with self._session("sendTransaction") as server:
            response = await server.send_transaction(tx)

        if response.status in (SendTransactionStatus.ERROR, SendTransactionStatus.TRY_AGAIN_LATER):
            detail = response.error_result_xdr or response.status.value
            return SubmitResult(status=SubmitStatus.ERROR, hash=response.hash, error=detail)

        # PENDING or DUPLICATE: the network holds the transaction
        return SubmitResult(status=SubmitStatus.ACCEPTED, hash=response.hash)

    async def get_transaction_status(self, tx_hash: str) -> TxStatusResult:
        async with self._session("getTransaction") as server:
            response = await server.get_transaction(tx_hash)

        status = _TX_STATUS_MAP.get(response.status, LedgerTxStatus.FAILED)
        code = None
        if status == LedgerTxStatus.FAILED:
            code = _result_code(response.result_xdr) or str(response.status.value)
        return TxStatusResult(status=status, code=code)

    async def get_events(
        self, start_ledger: int, contract_id: str, limit: int
    ) -> list[RawEvent]:
        filters = [
            EventFilter(
                event_type=EventFilterType.CONTRACT,
                contract_ids=[contract_id],
            )
        ]
        async with self._session("getEvents") as server:
            response = await server.get_events(
                start_ledger=start_ledger,
                filters=filters,
                limit=limit,
            )

        return [
            RawEvent(
                id=info.id,
                ledger=info.ledger,
                topic=list(info.topic),
                value=info.value,
                in_successful_contract_call=getattr(info, "in_successful_contract_call", True) is not False,
            )
            for info in response.events
        ]

    async def get_latest_ledger_sequence(self) -> int:
        async with self._session("getLatestLedger") as server:
            response = await server.get_latest_ledger()
        return response.sequence
