"""Horizon balance lookup and Friendbot funding over plain HTTP."""

from __future__ import annotations

import logging

import httpx

from stellar_crowdfund.errors import NetworkError
from stellar_crowdfund.stellar.codec import to_stroops

log = logging.getLogger(__name__)


class HorizonClient:
    """Implements BalanceSource against a Horizon server.

    Uses one short-lived httpx.AsyncClient per request, like the rest of the
    package's HTTP helpers.
    """

    def __init__(
        self,
        horizon_url: str = "https://horizon-testnet.stellar.org",
        friendbot_url: str = "https://friendbot.stellar.org",
        timeout: float = 15.0,
    ) -> None:
        self._horizon_url = horizon_url.rstrip("/")
        self._friendbot_url = friendbot_url.rstrip("/")
        self._timeout = timeout

    async def get_balance(self, address: str) -> int:
        """Native balance in stroops. Unfunded accounts (404) have 0."""
        url = f"{self._horizon_url}/accounts/{address}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url)
                if resp.status_code == 404:
                    return 0
                resp.raise_for_status()
                data = resp.json()
        except (httpx.TransportError, httpx.HTTPStatusError) as exc:
            log.warning("get_balance(%s) failed: %s", address[:16], exc)
            raise NetworkError(f"Failed to fetch account {address[:16]}...: {exc}") from exc

        for balance in data.get("balances", []):
            if balance.get("asset_type") == "native":
                return to_stroops(balance["balance"])
        return 0

    async def fund_with_friendbot(self, address: str) -> bool:
        """Ask the testnet Friendbot to fund ``address``. Returns success."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout * 2) as client:
                resp = await client.get(self._friendbot_url, params={"addr": address})
        except httpx.HTTPError as exc:
            log.warning("Friendbot funding of %s failed: %s", address[:16], exc)
            return False

        if resp.is_success:
            log.info("Friendbot funded %s", address[:16])
        else:
            log.warning("Friendbot returned HTTP %d for %s", resp.status_code, address[:16])
        return resp.is_success
