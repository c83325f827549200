"""Protocol interfaces for all stellar_crowdfund components."""

from stellar_crowdfund.interfaces.ledger import BalanceSource, LedgerClient
from stellar_crowdfund.interfaces.signer import Signer, WalletType

__all__ = ["LedgerClient", "BalanceSource", "Signer", "WalletType"]
