"""Crowdfund session - wires all components for one client session."""

from __future__ import annotations

import logging

from stellar_crowdfund.config import NETWORK_PASSPHRASES
from stellar_crowdfund.interfaces.ledger import BalanceSource, LedgerClient
from stellar_crowdfund.interfaces.signer import Signer
from stellar_crowdfund.models.campaign import Campaign
from stellar_crowdfund.models.config import AppConfig
from stellar_crowdfund.models.records import TransactionResult
from stellar_crowdfund.storage.cache import CampaignCache
from stellar_crowdfund.stellar.confirmation import ConfirmationPoller
from stellar_crowdfund.stellar.horizon import HorizonClient
from stellar_crowdfund.stellar.orchestrator import ProgressCallback, TransactionOrchestrator
from stellar_crowdfund.stellar.poller import BatchCallback, EventFeedPoller
from stellar_crowdfund.stellar.queries import CampaignReader
from stellar_crowdfund.stellar.rpc import SorobanLedgerClient

log = logging.getLogger(__name__)


class CrowdfundService:
    """The interface a UI talks to.

    Owns one CampaignCache shared by reads and writes, and one ledger
    client shared by the orchestrator and the event poller. The poller
    only produces display data and never touches the cache.
    """

    def __init__(
        self,
        cfg: AppConfig,
        client: LedgerClient,
        signer: Signer | None = None,
        balances: BalanceSource | None = None,
        cache: CampaignCache | None = None,
    ) -> None:
        self._cfg = cfg
        passphrase = cfg.network_passphrase or NETWORK_PASSPHRASES.get(cfg.network, "")

        self.client = client
        self.cache = cache or CampaignCache(ttl=cfg.cache_ttl)
        self.balances = balances or HorizonClient(cfg.horizon_url, cfg.friendbot_url)
        self.reader = CampaignReader(
            client, self.cache, cfg.contract_id, passphrase,
            base_fee=cfg.transactions.read_base_fee,
        )
        self.orchestrator: TransactionOrchestrator | None = None
        if signer is not None:
            self.orchestrator = TransactionOrchestrator(
                client=client,
                signer=signer,
                cache=self.cache,
                balances=self.balances,
                reader=self.reader,
                contract_id=cfg.contract_id,
                network_passphrase=passphrase,
                config=cfg.transactions,
                confirmation=ConfirmationPoller(client, cfg.transactions.confirm_interval),
            )
        self.poller = EventFeedPoller(
            client,
            cfg.contract_id,
            interval=cfg.events.poll_interval,
            lookback=cfg.events.lookback_ledgers,
            limit=cfg.events.limit,
        )

    @classmethod
    def from_config(cls, cfg: AppConfig, signer: Signer | None = None) -> CrowdfundService:
        """Build a session against the RPC and Horizon servers in ``cfg``."""
        log.info("Crowdfund session on %s (contract %s)", cfg.network, cfg.contract_id[:16])
        return cls(cfg, SorobanLedgerClient(cfg.rpc_url), signer=signer)

    def _require_orchestrator(self) -> TransactionOrchestrator:
        if self.orchestrator is None:
            raise RuntimeError("no signer configured; this session is read-only")
        return self.orchestrator

    # ── Writes ─────────────────────────────────────────────

    async def create_campaign(
        self,
        caller: str,
        title: str,
        description: str,
        target_xlm: int | float | str,
        duration_seconds: int,
        on_progress: ProgressCallback | None = None,
    ) -> TransactionResult:
        return await self._require_orchestrator().create_campaign(
            caller, title, description, target_xlm, duration_seconds, on_progress,
        )

    async def donate_to_campaign(
        self,
        caller: str,
        campaign_id: int,
        amount_xlm: int | float | str,
        on_progress: ProgressCallback | None = None,
    ) -> TransactionResult:
        return await self._require_orchestrator().donate_to_campaign(
            caller, campaign_id, amount_xlm, on_progress,
        )

    # ── Reads ──────────────────────────────────────────────

    async def get_campaign_count(self) -> int:
        return await self.reader.get_campaign_count()

    async def get_campaign(self, campaign_id: int, skip_cache: bool = False) -> Campaign | None:
        return await self.reader.get_campaign(campaign_id, skip_cache=skip_cache)

    async def list_campaigns(self) -> list[Campaign]:
        return await self.reader.list_campaigns()

    async def get_balance(self, address: str) -> int:
        return await self.balances.get_balance(address)

    async def fund_with_friendbot(self, address: str) -> bool:
        if not isinstance(self.balances, HorizonClient):
            raise RuntimeError("friendbot funding needs a HorizonClient")
        return await self.balances.fund_with_friendbot(address)

    # ── Events ─────────────────────────────────────────────

    def start_event_polling(self, on_batch: BatchCallback, interval: float | None = None):
        """Start the event feed. Returns a function that stops it."""
        return self.poller.start(on_batch, interval)

    async def aclose(self) -> None:
        """Stop background polling."""
        if self.poller.running:
            await self.poller.aclose()
