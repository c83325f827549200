"""Operation results and the value types exchanged with the ledger client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TransactionStatus(str, Enum):
    """Externally observable state of a write operation."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    FAIL = "fail"


class ErrorKind(str, Enum):
    """Terminal failure classification for a write operation."""

    WALLET_NOT_FOUND = "wallet_not_found"
    TRANSACTION_REJECTED = "transaction_rejected"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SIMULATION_FAILED = "simulation_failed"
    SUBMISSION_ERROR = "submission_error"
    ON_CHAIN_FAILED = "on_chain_failed"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    PRECONDITION_FAILED = "precondition_failed"
    UNKNOWN = "unknown"


@dataclass
class TransactionResult:
    """Result of create_campaign() / donate_to_campaign().

    ``hash`` is only set once a submission happened. For the donation saga,
    ``payment_hash`` is the phase-1 payment and ``funds_transferred`` is True
    when the payment confirmed but the contract call did not.
    """

    status: TransactionStatus
    hash: str | None = None
    error: str | None = None
    kind: ErrorKind | None = None
    payment_hash: str | None = None
    funds_transferred: bool = False

    @property
    def success(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    @classmethod
    def ok(cls, tx_hash: str, payment_hash: str | None = None) -> TransactionResult:
        return cls(
            status=TransactionStatus.SUCCESS,
            hash=tx_hash,
            payment_hash=payment_hash,
        )


# ── Ledger client value types ────────────────────────────


class SubmitStatus(str, Enum):
    ACCEPTED = "accepted"
    ERROR = "error"


class LedgerTxStatus(str, Enum):
    NOT_FOUND = "not_found"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class SimulationResult:
    """Outcome of simulate(). ``raw`` keeps the RPC response for assemble()."""

    error: str | None = None
    retval_xdr: str | None = None
    raw: object | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SubmitResult:
    status: SubmitStatus
    hash: str
    error: str | None = None

    @property
    def accepted(self) -> bool:
        return self.status == SubmitStatus.ACCEPTED


@dataclass
class TxStatusResult:
    status: LedgerTxStatus
    code: str | None = None  # remote result code on failure


@dataclass
class RawEvent:
    """An undecoded contract event as returned by getEvents."""

    id: str
    ledger: int
    topic: list[str]  # base64 XDR SCVals
    value: str  # base64 XDR SCVal
    in_successful_contract_call: bool = True
