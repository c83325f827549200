"""Read-only contract queries, served through the campaign cache."""

from __future__ import annotations

import logging

from stellar_sdk import Account, Keypair, TransactionBuilder, scval, xdr

from stellar_crowdfund.interfaces.ledger import LedgerClient
from stellar_crowdfund.models.campaign import Campaign
from stellar_crowdfund.storage.cache import CampaignCache
from stellar_crowdfund.stellar.codec import decode_campaign, decode_scval_xdr

log = logging.getLogger(__name__)


class CampaignReader:
    """Read-only queries against the crowdfund contract.

    A cache miss costs one simulation. Reads never sign or submit: the
    transaction's source is a throwaway random account that only satisfies
    the simulator's source-account requirement.
    """

    def __init__(
        self,
        client: LedgerClient,
        cache: CampaignCache,
        contract_id: str,
        network_passphrase: str,
        base_fee: int = 100,
    ) -> None:
        self._client = client
        self._cache = cache
        self._contract_id = contract_id
        self._passphrase = network_passphrase
        self._base_fee = base_fee

    async def _simulate_read(self, method: str, params: list[xdr.SCVal]) -> str | None:
        """Simulate ``method`` and return its base64 return value, or None."""
        source = Account(Keypair.random().public_key, 0)
        tx = (
            TransactionBuilder(
                source_account=source,
                network_passphrase=self._passphrase,
                base_fee=self._base_fee,
            )
            .append_invoke_contract_function_op(
                contract_id=self._contract_id,
                function_name=method,
                parameters=params,
            )
            .set_timeout(30)
            .build()
        )
        simulation = await self._client.simulate(tx)
        if not simulation.ok:
            log.debug("%s simulation failed: %s", method, simulation.error)
            return None
        return simulation.retval_xdr

    async def get_campaign_count(self) -> int:
        """Number of campaigns created so far. 0 when the read fails."""
        cached = self._cache.get_count()
        if cached is not None:
            return cached

        generation = self._cache.generation
        try:
            retval = await self._simulate_read("get_count", [])
            if retval is None:
                return 0
            count = int(decode_scval_xdr(retval))
        except Exception as exc:
            log.warning("get_count failed: %s", exc)
            return 0

        self._cache.set_count_if(count, generation)
        return count

    async def get_campaign(self, campaign_id: int, skip_cache: bool = False) -> Campaign | None:
        """Fetch one campaign. None when it does not exist or the read fails."""
        if not skip_cache:
            cached = self._cache.get_campaign(campaign_id)
            if cached is not None:
                return cached

        generation = self._cache.generation
        try:
            retval = await self._simulate_read("get_campaign", [scval.to_uint32(campaign_id)])
            if retval is None:
                return None
            campaign = decode_campaign(campaign_id, retval)
        except Exception as exc:
            log.warning("get_campaign(%d) failed: %s", campaign_id, exc)
            return None

        self._cache.set_campaign_if(campaign_id, campaign, generation)
        return campaign

    async def list_campaigns(self) -> list[Campaign]:
        """All readable campaigns, in id order."""
        count = await self.get_campaign_count()
        campaigns: list[Campaign] = []
        for campaign_id in range(count):
            campaign = await self.get_campaign(campaign_id)
            if campaign is not None:
                campaigns.append(campaign)
        return campaigns
