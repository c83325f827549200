"""Shared fixtures for stellar_crowdfund tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key
from stellar_sdk import Keypair

from stellar_crowdfund.models.config import TransactionConfig
from stellar_crowdfund.storage.cache import CampaignCache
from stellar_crowdfund.stellar.confirmation import ConfirmationPoller
from stellar_crowdfund.stellar.orchestrator import TransactionOrchestrator
from stellar_crowdfund.stellar.queries import CampaignReader

from tests.factories import NOW
from tests.mocks import MockBalances, MockLedgerClient, MockSigner

TEST_SECRET = "SBWVJTD3F5ETMVWCNI7MM4HUAPUSCUXXMUEJZJTPRWRJGXW2BF4SVQTK"
TEST_PUBLIC = "GDNAG4KFFVF5HCSGRWZIXZNL2SR2KBGJSHW2A6FI6DZI62XF6IBLO4GD"

CONTRACT_ID = "CCEWBXDQJ2YHQ6NVRQW3OLAJ6MGH2FSDSEQW6L4GSEUPZQRLIFK3UW3F"
NETWORK_PASSPHRASE = "Test SDF Network ; September 2015"

EXPLORER_BASE = "https://stellar.expert/explorer/testnet"


def stellar_expert_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to stellar.expert for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Stellar Testnet"
    meta["Crowdfund Contract"] = CONTRACT_ID
    meta["Test Account"] = TEST_PUBLIC


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable Stellar explorer links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Stellar Testnet Explorer Links</strong><br/>"
        f'Crowdfund: {stellar_expert_link("contract", CONTRACT_ID, CONTRACT_ID)}<br/>'
        f'Test Account: {stellar_expert_link("account", TEST_PUBLIC, TEST_PUBLIC)}'
        "</div>"
    )


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CampaignCache(ttl=30.0, clock=clock)


@pytest.fixture
def ledger():
    return MockLedgerClient()


@pytest.fixture
def signer():
    return MockSigner(Keypair.from_secret(TEST_SECRET))


@pytest.fixture
def balances():
    return MockBalances()


@pytest.fixture
def reader(ledger, cache):
    return CampaignReader(ledger, cache, CONTRACT_ID, NETWORK_PASSPHRASE)


@pytest.fixture
def orchestrator(ledger, signer, cache, balances, reader):
    return TransactionOrchestrator(
        client=ledger,
        signer=signer,
        cache=cache,
        balances=balances,
        reader=reader,
        contract_id=CONTRACT_ID,
        network_passphrase=NETWORK_PASSPHRASE,
        config=TransactionConfig(),
        confirmation=ConfirmationPoller(ledger, interval=0),
        clock=lambda: NOW,
    )
