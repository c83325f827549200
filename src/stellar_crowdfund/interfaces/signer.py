"""Signer protocol - signs an opaque transaction envelope, or fails."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class WalletType(str, Enum):
    """Signer variants, dispatched by tag."""

    FREIGHTER = "freighter"
    ALBEDO = "albedo"
    XBULL = "xbull"
    KEYPAIR = "keypair"  # local secret seed


class Signer(Protocol):
    """A wallet capable of signing a base64 XDR transaction envelope.

    ``sign`` may suspend indefinitely while a human decides. It raises
    TransactionRejectedError on decline and WalletNotFoundError when the
    wallet is unavailable.
    """

    wallet_type: WalletType

    def is_available(self) -> bool:
        ...

    async def sign(self, envelope_xdr: str, network_passphrase: str) -> str:
        ...
