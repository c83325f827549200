"""Exception hierarchy and error classification for stellar_crowdfund.

Every failure an operation can reach at runtime is a CrowdfundError carrying
an ErrorKind. The orchestrator converts them into fail TransactionResults at
its public boundary; none of them is fatal to the process.

Argument errors (a non-positive amount, an empty title) are raised as
InvalidArgumentError before any network call and are not converted.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from stellar_sdk.exceptions import BaseRequestError
from stellar_sdk.exceptions import ConnectionError as SdkConnectionError

from stellar_crowdfund.models.records import ErrorKind, TransactionResult, TransactionStatus

log = logging.getLogger(__name__)


class CrowdfundError(Exception):
    """Base class for expected, caller-recoverable failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, tx_hash: str | None = None):
        super().__init__(message)
        self.message = message
        self.tx_hash = tx_hash


class WalletNotFoundError(CrowdfundError):
    """No signer is available for the requested wallet."""

    kind = ErrorKind.WALLET_NOT_FOUND

    def __init__(self, wallet_name: str = "Wallet"):
        super().__init__(
            f"{wallet_name} wallet extension not found. "
            "Please install it from the official website."
        )
        self.wallet_name = wallet_name


class TransactionRejectedError(CrowdfundError):
    """The human declined to sign."""

    kind = ErrorKind.TRANSACTION_REJECTED

    def __init__(self, message: str = "Transaction was rejected by the user in their wallet."):
        super().__init__(message)


class InsufficientBalanceError(CrowdfundError):
    """Pre-flight balance check failed. Amounts are XLM display strings."""

    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, required: str, available: str):
        super().__init__(
            f"Insufficient balance. Required: {required} XLM, Available: {available} XLM"
        )
        self.required = required
        self.available = available


class SimulationFailedError(CrowdfundError):
    """The RPC refused the call in simulation; nothing was submitted."""

    kind = ErrorKind.SIMULATION_FAILED

    def __init__(self, detail: str):
        reason = contract_reason(detail)
        prefix = f"Simulation failed ({reason})" if reason else "Simulation failed"
        super().__init__(f"{prefix}: {detail}")
        self.detail = detail
        self.reason = reason


class SubmissionError(CrowdfundError):
    """sendTransaction answered ERROR; the envelope must be rebuilt."""

    kind = ErrorKind.SUBMISSION_ERROR

    def __init__(self, detail: str, tx_hash: str | None = None):
        super().__init__(f"Submission failed: {detail}", tx_hash=tx_hash)
        self.detail = detail


class OnChainFailedError(CrowdfundError):
    """The ledger executed the transaction and it failed."""

    kind = ErrorKind.ON_CHAIN_FAILED

    def __init__(self, tx_hash: str, code: str | None = None):
        super().__init__(
            f"Transaction failed on-chain (status: {code or 'FAILED'})", tx_hash=tx_hash,
        )
        self.code = code


class ConfirmationTimeoutError(CrowdfundError):
    """No verdict after the attempt cap. The transaction may still land."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, tx_hash: str, attempts: int):
        super().__init__(
            f"Transaction not confirmed after {attempts} status checks; "
            "re-check its status later before resubmitting",
            tx_hash=tx_hash,
        )
        self.attempts = attempts


class NetworkError(CrowdfundError):
    """Transport-level failure talking to RPC or Horizon."""

    kind = ErrorKind.NETWORK_ERROR


class AccountNotFoundError(CrowdfundError):
    """The source account does not exist on the ledger (unfunded)."""

    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, address: str):
        super().__init__(f"Account {address[:16]}... not found on the ledger. Fund it first.")
        self.address = address


class PreconditionFailedError(CrowdfundError):
    """A local guard refused the operation before any submission."""

    kind = ErrorKind.PRECONDITION_FAILED


class InvalidArgumentError(ValueError):
    """Programmer error: invalid arguments, rejected before the network."""


# ── Classification ─────────────────────────────────────

_NOT_FOUND_MARKERS = ("not found", "not installed", "no extension", "unable to find")
_REJECTED_MARKERS = ("user declined", "declined", "rejected", "cancelled", "denied", "user refused")
_INSUFFICIENT_MARKERS = ("insufficient", "underfunded", "not enough")

# Panic messages of the crowdfund contract
_CONTRACT_REASONS = {
    "Campaign has ended": "campaign_ended",
    "already reached its target": "target_reached",
    "would exceed campaign target": "exceeds_target",
    "Campaign not found": "campaign_not_found",
    "Already claimed": "already_claimed",
    "Campaign still active": "campaign_active",
    "Amount must be positive": "amount_not_positive",
}


def contract_reason(message: str) -> str | None:
    """Map a contract panic message embedded in an RPC error to a short tag."""
    for needle, reason in _CONTRACT_REASONS.items():
        if needle in message:
            return reason
    return None


def classify_error(exc: BaseException | str) -> ErrorKind:
    """Best-effort classification of a low-level error.

    Structured information wins: our own exception classes carry their kind
    and transport exception types map to NETWORK_ERROR. Otherwise the message
    is matched against known substrings. Never raises.
    """
    try:
        if isinstance(exc, CrowdfundError):
            return exc.kind
        if isinstance(
            exc,
            (SdkConnectionError, httpx.TransportError, asyncio.TimeoutError, ConnectionError),
        ):
            return ErrorKind.NETWORK_ERROR

        lower = str(exc).lower()
        if any(m in lower for m in _NOT_FOUND_MARKERS):
            return ErrorKind.WALLET_NOT_FOUND
        if any(m in lower for m in _REJECTED_MARKERS):
            return ErrorKind.TRANSACTION_REJECTED
        if any(m in lower for m in _INSUFFICIENT_MARKERS):
            return ErrorKind.INSUFFICIENT_BALANCE
        if isinstance(exc, BaseRequestError):
            return ErrorKind.NETWORK_ERROR
    except Exception as err:  # classification must fail open
        log.debug("Could not classify error %r: %s", exc, err)
    return ErrorKind.UNKNOWN


def to_crowdfund_error(exc: BaseException) -> CrowdfundError:
    """Wrap a foreign exception into the matching CrowdfundError subclass."""
    if isinstance(exc, CrowdfundError):
        return exc
    kind = classify_error(exc)
    if kind == ErrorKind.WALLET_NOT_FOUND:
        return WalletNotFoundError()
    if kind == ErrorKind.TRANSACTION_REJECTED:
        return TransactionRejectedError()
    if kind == ErrorKind.INSUFFICIENT_BALANCE:
        return InsufficientBalanceError("unknown", "unknown")
    if kind == ErrorKind.NETWORK_ERROR:
        return NetworkError(str(exc) or type(exc).__name__)
    return CrowdfundError(str(exc) or type(exc).__name__)


def failure_result(exc: BaseException, **extra) -> TransactionResult:
    """Project an exception raised inside an operation onto a fail result."""
    return TransactionResult(
        status=TransactionStatus.FAIL,
        hash=getattr(exc, "tx_hash", None),
        error=str(exc) or type(exc).__name__,
        kind=classify_error(exc),
        **extra,
    )
