"""Transaction orchestrator - create() and the two-phase donate() saga.

Every write goes through the same pipeline:

    build -> simulate -> assemble -> sign -> submit -> confirm

and ends in exactly one terminal state: confirmed, simulation failed,
rejected by the signer, submission error, failed on-chain, or timed out.
Steps within one operation run strictly in sequence. Nothing is retried
automatically, and a submitted transaction cannot be cancelled.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from stellar_sdk import Account, Asset, StrKey, TransactionBuilder, TransactionEnvelope, scval, xdr

from stellar_crowdfund.errors import (
    CrowdfundError,
    InsufficientBalanceError,
    InvalidArgumentError,
    PreconditionFailedError,
    SimulationFailedError,
    SubmissionError,
    failure_result,
)
from stellar_crowdfund.interfaces.ledger import BalanceSource, LedgerClient
from stellar_crowdfund.interfaces.signer import Signer
from stellar_crowdfund.models.campaign import Campaign
from stellar_crowdfund.models.config import TransactionConfig
from stellar_crowdfund.models.records import TransactionResult, TransactionStatus
from stellar_crowdfund.storage.cache import CampaignCache
from stellar_crowdfund.stellar.codec import STROOPS_PER_XLM, to_stroops, to_xlm
from stellar_crowdfund.stellar.confirmation import ConfirmationPoller
from stellar_crowdfund.stellar.queries import CampaignReader

log = logging.getLogger(__name__)

ProgressCallback = Callable[[TransactionResult], None]


def _check_address(address: str, what: str) -> None:
    if not StrKey.is_valid_ed25519_public_key(address):
        raise InvalidArgumentError(f"{what} is not a valid Stellar account: {address!r}")


def check_donation(campaign: Campaign, amount: int, now: float) -> None:
    """Local guards for a donation of ``amount`` stroops.

    Evaluated against the freshest ``raised`` we know of, which may be up
    to one cache TTL old. The contract re-checks on submission.
    """
    if campaign.is_expired(now):
        raise PreconditionFailedError("Campaign has ended")
    if campaign.is_funded:
        raise PreconditionFailedError("Campaign has already reached its target!")
    if campaign.raised + amount > campaign.target:
        remaining = campaign.remaining / STROOPS_PER_XLM
        raise PreconditionFailedError(f"Only {remaining:.2f} XLM needed to reach target!")


class TransactionOrchestrator:
    """Drives write operations against the crowdfund contract.

    Results are returned as TransactionResult values; expected failures
    never propagate as exceptions. Invalid arguments raise
    InvalidArgumentError before anything touches the network.
    """

    def __init__(
        self,
        client: LedgerClient,
        signer: Signer,
        cache: CampaignCache,
        balances: BalanceSource,
        reader: CampaignReader,
        contract_id: str,
        network_passphrase: str,
        config: TransactionConfig | None = None,
        confirmation: ConfirmationPoller | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._signer = signer
        self._cache = cache
        self._balances = balances
        self._reader = reader
        self._contract_id = contract_id
        self._passphrase = network_passphrase
        self._cfg = config or TransactionConfig()
        self._confirmation = confirmation or ConfirmationPoller(
            client, interval=self._cfg.confirm_interval,
        )
        self._clock = clock

    # ── Public operations ──────────────────────────────────

    async def create_campaign(
        self,
        caller: str,
        title: str,
        description: str,
        target_xlm: int | float | str,
        duration_seconds: int,
        on_progress: ProgressCallback | None = None,
    ) -> TransactionResult:
        """Create a campaign. On confirmation the whole cache is dropped."""
        _check_address(caller, "caller")
        if not title or not title.strip():
            raise InvalidArgumentError("title must not be empty")
        target = to_stroops(target_xlm)
        if target <= 0:
            raise InvalidArgumentError(f"target must be positive, got {target_xlm}")
        if duration_seconds <= 0:
            raise InvalidArgumentError(f"duration must be positive, got {duration_seconds}")

        deadline = int(self._clock()) + int(duration_seconds)
        log.info("Creating campaign %r (target=%d stroops, deadline=%d)", title, target, deadline)

        try:
            await self._check_reserve(caller)
            tx_hash = await self._invoke(
                caller,
                "create",
                [
                    scval.to_address(caller),
                    scval.to_string(title),
                    scval.to_string(description),
                    scval.to_int128(target),
                    scval.to_uint64(deadline),
                ],
                on_progress,
            )
        except CrowdfundError as exc:
            log.warning("create failed: %s (%s)", exc, exc.kind.value)
            return failure_result(exc)
        except Exception as exc:
            log.error("create unexpected error: %s", exc, exc_info=True)
            return failure_result(exc)

        self._cache.invalidate_all()
        log.info("Campaign %r created (tx=%s)", title, tx_hash[:16])
        return TransactionResult.ok(tx_hash)

    async def donate_to_campaign(
        self,
        caller: str,
        campaign_id: int,
        amount_xlm: int | float | str,
        on_progress: ProgressCallback | None = None,
    ) -> TransactionResult:
        """Donate in two phases: pay the creator, then record it on the contract.

        The phases are separate transactions. If the payment confirms and the
        contract call does not, the result is a failure with
        ``funds_transferred=True``; nothing is refunded.
        """
        _check_address(caller, "caller")
        if isinstance(campaign_id, bool) or not isinstance(campaign_id, int) or campaign_id < 0:
            raise InvalidArgumentError(f"campaign_id must be a non-negative integer, got {campaign_id!r}")
        amount = to_stroops(amount_xlm)
        if amount <= 0:
            raise InvalidArgumentError(f"amount must be positive, got {amount_xlm}")

        try:
            campaign = await self._reader.get_campaign(campaign_id)
            if campaign is None:
                raise PreconditionFailedError("Campaign not found")
            check_donation(campaign, amount, self._clock())
        except CrowdfundError as exc:
            log.warning("donate to campaign %d refused: %s", campaign_id, exc)
            return failure_result(exc)

        # Phase 1: real payment to the creator
        try:
            payment_hash = await self._pay(caller, campaign.creator, amount, on_progress)
        except CrowdfundError as exc:
            log.warning("donation payment to campaign %d failed: %s", campaign_id, exc)
            return failure_result(exc)
        except Exception as exc:
            log.error("donation payment unexpected error: %s", exc, exc_info=True)
            return failure_result(exc)

        # Phase 2: record the donation in the contract
        try:
            tx_hash = await self._invoke(
                caller,
                "donate",
                [
                    scval.to_address(caller),
                    scval.to_uint32(campaign_id),
                    scval.to_int128(amount),
                ],
                on_progress,
            )
        except Exception as exc:
            log.error(
                "Donation to campaign %d paid (tx=%s) but not recorded: %s",
                campaign_id, payment_hash[:16], exc,
            )
            result = failure_result(exc, payment_hash=payment_hash, funds_transferred=True)
            result.error = (
                f"Payment of {to_xlm(amount)} XLM was sent (tx {payment_hash}) "
                f"but the donation was not recorded: {result.error}"
            )
            return result

        self._cache.invalidate_campaign(campaign_id)
        log.info(
            "Donated %d stroops to campaign %d (payment=%s, tx=%s)",
            amount, campaign_id, payment_hash[:16], tx_hash[:16],
        )
        return TransactionResult.ok(tx_hash, payment_hash=payment_hash)

    # ── Pipeline steps ─────────────────────────────────────

    async def _check_reserve(self, caller: str) -> None:
        required = to_stroops(self._cfg.min_reserve_xlm)
        balance = await self._balances.get_balance(caller)
        if balance < required:
            raise InsufficientBalanceError(f"{to_xlm(required):.2f}", f"{to_xlm(balance):.2f}")

    def _builder(self, account: Account, base_fee: int) -> TransactionBuilder:
        return TransactionBuilder(
            source_account=account,
            network_passphrase=self._passphrase,
            base_fee=base_fee,
        )

    async def _invoke(
        self,
        caller: str,
        method: str,
        params: list[xdr.SCVal],
        on_progress: ProgressCallback | None,
    ) -> str:
        """Build, simulate, assemble, sign, submit and confirm a contract call."""
        account = await self._client.get_account(caller)
        tx = (
            self._builder(account, self._cfg.contract_base_fee)
            .append_invoke_contract_function_op(
                contract_id=self._contract_id,
                function_name=method,
                parameters=params,
            )
            .set_timeout(self._cfg.tx_timeout)
            .build()
        )

        simulation = await self._client.simulate(tx)
        if not simulation.ok:
            raise SimulationFailedError(simulation.error or "unknown simulation error")
        log.debug("%s simulated", method)

        prepared = await self._client.assemble(tx, simulation)
        return await self._sign_submit_confirm(
            prepared, self._cfg.contract_confirm_attempts, method, on_progress,
        )

    async def _pay(
        self,
        caller: str,
        destination: str,
        amount: int,
        on_progress: ProgressCallback | None,
    ) -> str:
        """Send a native payment and wait for it to confirm."""
        account = await self._client.get_account(caller)
        tx = (
            self._builder(account, self._cfg.payment_base_fee)
            .append_payment_op(
                destination=destination,
                asset=Asset.native(),
                amount=to_xlm(amount),
            )
            .set_timeout(self._cfg.tx_timeout)
            .build()
        )
        return await self._sign_submit_confirm(
            tx, self._cfg.payment_confirm_attempts, "payment", on_progress,
        )

    async def _sign_submit_confirm(
        self,
        tx: TransactionEnvelope,
        max_attempts: int,
        label: str,
        on_progress: ProgressCallback | None,
    ) -> str:
        signed_xdr = await self._signer.sign(tx.to_xdr(), self._passphrase)
        signed = TransactionEnvelope.from_xdr(signed_xdr, self._passphrase)
        log.debug("%s signed", label)

        submitted = await self._client.submit(signed)
        if not submitted.accepted:
            raise SubmissionError(submitted.error or "ERROR", tx_hash=submitted.hash)
        log.info("%s submitted (tx=%s)", label, submitted.hash[:16])

        if on_progress is not None:
            on_progress(TransactionResult(status=TransactionStatus.PENDING, hash=submitted.hash))

        await self._confirmation.wait(submitted.hash, max_attempts)
        return submitted.hash
