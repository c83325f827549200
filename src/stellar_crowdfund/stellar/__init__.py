"""Stellar/Soroban integration components."""

from stellar_crowdfund.stellar.confirmation import ConfirmationPoller
from stellar_crowdfund.stellar.horizon import HorizonClient
from stellar_crowdfund.stellar.orchestrator import TransactionOrchestrator
from stellar_crowdfund.stellar.poller import EventFeedPoller
from stellar_crowdfund.stellar.queries import CampaignReader
from stellar_crowdfund.stellar.rpc import SorobanLedgerClient
from stellar_crowdfund.stellar.signer import BridgeSigner, KeypairSigner, create_signer

__all__ = [
    "BridgeSigner",
    "CampaignReader",
    "ConfirmationPoller",
    "EventFeedPoller",
    "HorizonClient",
    "KeypairSigner",
    "SorobanLedgerClient",
    "TransactionOrchestrator",
    "create_signer",
]
