"""Signer implementations, selected by an explicit WalletType tag."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from stellar_sdk import Keypair, TransactionEnvelope

from stellar_crowdfund.errors import (
    CrowdfundError,
    WalletNotFoundError,
    to_crowdfund_error,
)
from stellar_crowdfund.interfaces.signer import WalletType

log = logging.getLogger(__name__)

# A valid base64 envelope is always longer than this; shorter replies from a
# wallet are error strings.
MIN_ENVELOPE_LENGTH = 200

WALLET_NAMES = {
    WalletType.FREIGHTER: "Freighter",
    WalletType.ALBEDO: "Albedo",
    WalletType.XBULL: "xBull",
    WalletType.KEYPAIR: "Keypair",
}

SignBridge = Callable[[str, str], Awaitable[str]]
"""Host-provided adapter: (envelope_xdr, network_passphrase) -> signed XDR."""


class KeypairSigner:
    """Signs locally with a secret seed."""

    wallet_type = WalletType.KEYPAIR

    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair

    @classmethod
    def from_secret(cls, secret: str) -> KeypairSigner:
        return cls(Keypair.from_secret(secret))

    @property
    def public_key(self) -> str:
        return self._keypair.public_key

    def is_available(self) -> bool:
        return True

    async def sign(self, envelope_xdr: str, network_passphrase: str) -> str:
        te = TransactionEnvelope.from_xdr(envelope_xdr, network_passphrase)
        te.sign(self._keypair)
        return te.to_xdr()


class BridgeSigner:
    """Signs through an external wallet (Freighter, Albedo, xBull).

    The wallet itself lives outside this package; the host injects a bridge
    coroutine that hands the envelope to it and returns what it answered.
    """

    def __init__(self, wallet_type: WalletType, bridge: SignBridge | None = None) -> None:
        if wallet_type == WalletType.KEYPAIR:
            raise ValueError("use KeypairSigner for local keys")
        self.wallet_type = wallet_type
        self._bridge = bridge

    @property
    def name(self) -> str:
        return WALLET_NAMES[self.wallet_type]

    def is_available(self) -> bool:
        return self._bridge is not None

    async def sign(self, envelope_xdr: str, network_passphrase: str) -> str:
        if self._bridge is None:
            raise WalletNotFoundError(self.name)

        try:
            signed = await self._bridge(envelope_xdr, network_passphrase)
        except CrowdfundError:
            raise
        except Exception as exc:
            log.warning("%s signing failed: %s", self.name, exc)
            raise to_crowdfund_error(exc) from exc

        if not signed:
            raise CrowdfundError(f"{self.name} did not return a signed transaction")
        if len(signed) < MIN_ENVELOPE_LENGTH:
            # The wallet answered with an error message instead of XDR
            log.warning("%s returned a non-envelope reply: %s", self.name, signed)
            raise to_crowdfund_error(Exception(signed))
        return signed


def create_signer(
    wallet_type: WalletType | str,
    *,
    secret: str | None = None,
    bridge: SignBridge | None = None,
) -> KeypairSigner | BridgeSigner:
    """Build the signer variant for ``wallet_type``."""
    wallet_type = WalletType(wallet_type)
    if wallet_type == WalletType.KEYPAIR:
        if not secret:
            raise WalletNotFoundError(WALLET_NAMES[wallet_type])
        return KeypairSigner.from_secret(secret)
    return BridgeSigner(wallet_type, bridge)

