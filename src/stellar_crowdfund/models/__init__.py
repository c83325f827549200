"""Data models for the stellar_crowdfund client."""

from stellar_crowdfund.models.campaign import CacheEntry, Campaign
from stellar_crowdfund.models.config import AppConfig, EventConfig, TransactionConfig
from stellar_crowdfund.models.events import ContractEvent
from stellar_crowdfund.models.records import (
    ErrorKind,
    LedgerTxStatus,
    RawEvent,
    SimulationResult,
    SubmitResult,
    SubmitStatus,
    TransactionResult,
    TransactionStatus,
    TxStatusResult,
)

__all__ = [
    "Campaign", "CacheEntry",
    "AppConfig", "EventConfig", "TransactionConfig",
    "ContractEvent",
    "ErrorKind", "TransactionResult", "TransactionStatus",
    "LedgerTxStatus", "RawEvent", "SimulationResult", "SubmitResult",
    "SubmitStatus", "TxStatusResult",
]
