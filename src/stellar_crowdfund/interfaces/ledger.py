"""LedgerClient protocol - the sole network boundary to Soroban RPC."""

from __future__ import annotations

from typing import Protocol

from stellar_sdk import Account, TransactionEnvelope

from stellar_crowdfund.models.records import (
    RawEvent,
    SimulationResult,
    SubmitResult,
    TxStatusResult,
)


class LedgerClient(Protocol):
    """Typed wrapper over the Soroban RPC methods the core needs."""

    async def get_account(self, address: str) -> Account:
        """Load an account with its current sequence. Raises AccountNotFoundError."""
        ...

    async def simulate(self, tx: TransactionEnvelope) -> SimulationResult:
        """Dry-run a contract invocation."""
        ...

    async def assemble(
        self, tx: TransactionEnvelope, simulation: SimulationResult
    ) -> TransactionEnvelope:
        """Apply footprint, resources and fee from a successful simulation."""
        ...

    async def submit(self, tx: TransactionEnvelope) -> SubmitResult:
        """sendTransaction. Returns the hash and an immediate verdict."""
        ...

    async def get_transaction_status(self, tx_hash: str) -> TxStatusResult:
        """getTransaction, reduced to not_found / success / failed."""
        ...

    async def get_events(
        self, start_ledger: int, contract_id: str, limit: int
    ) -> list[RawEvent]:
        """getEvents for one contract, in ledger order."""
        ...

    async def get_latest_ledger_sequence(self) -> int:
        ...


class BalanceSource(Protocol):
    """Native balance lookup used for the pre-flight reserve check."""

    async def get_balance(self, address: str) -> int:
        """Native balance in stroops; 0 for unfunded accounts."""
        ...
