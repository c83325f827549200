"""Signer variants: local keypair and bridged browser wallets."""

from __future__ import annotations

import pytest
from stellar_sdk import Account, Asset, Keypair, TransactionBuilder, TransactionEnvelope

from stellar_crowdfund.errors import (
    CrowdfundError,
    TransactionRejectedError,
    WalletNotFoundError,
)
from stellar_crowdfund.interfaces.signer import WalletType
from stellar_crowdfund.stellar.signer import BridgeSigner, KeypairSigner, create_signer

from tests.conftest import NETWORK_PASSPHRASE, TEST_PUBLIC, TEST_SECRET
from tests.factories import CREATOR


def _envelope_xdr() -> str:
    tx = (
        TransactionBuilder(
            source_account=Account(TEST_PUBLIC, 1),
            network_passphrase=NETWORK_PASSPHRASE,
            base_fee=100,
        )
        .append_payment_op(destination=CREATOR, asset=Asset.native(), amount="1")
        .set_timeout(30)
        .build()
    )
    return tx.to_xdr()


async def test_keypair_signer_signs():
    signer = KeypairSigner.from_secret(TEST_SECRET)
    signed = await signer.sign(_envelope_xdr(), NETWORK_PASSPHRASE)

    te = TransactionEnvelope.from_xdr(signed, NETWORK_PASSPHRASE)
    assert len(te.signatures) == 1
    Keypair.from_public_key(TEST_PUBLIC).verify(te.hash(), te.signatures[0].signature)
    assert signer.public_key == TEST_PUBLIC
    assert signer.wallet_type == WalletType.KEYPAIR


async def test_bridge_without_wallet_is_not_found():
    signer = BridgeSigner(WalletType.FREIGHTER)
    assert not signer.is_available()
    with pytest.raises(WalletNotFoundError, match="Freighter"):
        await signer.sign(_envelope_xdr(), NETWORK_PASSPHRASE)


async def test_bridge_returns_signed_envelope():
    keypair = Keypair.from_secret(TEST_SECRET)

    async def bridge(envelope_xdr, passphrase):
        te = TransactionEnvelope.from_xdr(envelope_xdr, passphrase)
        te.sign(keypair)
        return te.to_xdr()

    signer = BridgeSigner(WalletType.ALBEDO, bridge)
    signed = await signer.sign(_envelope_xdr(), NETWORK_PASSPHRASE)
    assert TransactionEnvelope.from_xdr(signed, NETWORK_PASSPHRASE).signatures


async def test_bridge_decline_is_classified():
    async def bridge(envelope_xdr, passphrase):
        raise RuntimeError("User declined access")

    signer = BridgeSigner(WalletType.XBULL, bridge)
    with pytest.raises(TransactionRejectedError):
        await signer.sign(_envelope_xdr(), NETWORK_PASSPHRASE)


async def test_bridge_short_reply_is_an_error_message():
    async def bridge(envelope_xdr, passphrase):
        return "User rejected the request"

    signer = BridgeSigner(WalletType.FREIGHTER, bridge)
    with pytest.raises(TransactionRejectedError):
        await signer.sign(_envelope_xdr(), NETWORK_PASSPHRASE)


async def test_bridge_empty_reply():
    async def bridge(envelope_xdr, passphrase):
        return ""

    signer = BridgeSigner(WalletType.FREIGHTER, bridge)
    with pytest.raises(CrowdfundError, match="did not return"):
        await signer.sign(_envelope_xdr(), NETWORK_PASSPHRASE)


def test_create_signer_dispatches_on_tag():
    assert isinstance(create_signer("keypair", secret=TEST_SECRET), KeypairSigner)
    bridged = create_signer(WalletType.ALBEDO)
    assert isinstance(bridged, BridgeSigner)
    assert bridged.name == "Albedo"


def test_create_keypair_signer_without_secret():
    with pytest.raises(WalletNotFoundError):
        create_signer(WalletType.KEYPAIR)


def test_unknown_wallet_tag():
    with pytest.raises(ValueError):
        create_signer("metamask")
