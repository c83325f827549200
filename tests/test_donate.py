"""donate_to_campaign(): local guards and the two-phase payment saga."""

from __future__ import annotations

import pytest
from stellar_sdk.operation import InvokeHostFunction, Payment

from stellar_crowdfund.errors import InvalidArgumentError
from stellar_crowdfund.models.records import ErrorKind, LedgerTxStatus, TransactionStatus

from tests.conftest import TEST_PUBLIC
from tests.factories import CREATOR, NOW, campaign_xdr, make_campaign

XLM = 10_000_000


# ── Happy path ────────────────────────────────────────────────────


async def test_donate_pays_creator_then_records(orchestrator, ledger, cache):
    cache.set_campaign(2, make_campaign(2, raised=10 * XLM))
    cache.set_campaign(3, make_campaign(3))
    progress = []

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 2, 10, on_progress=progress.append)

    assert result.success
    assert result.payment_hash == "mock_tx_001"
    assert result.hash == "mock_tx_002"
    assert not result.funds_transferred

    # Phase 1 is a plain payment (no simulation), phase 2 the contract call
    assert ledger.methods() == [
        "get_account", "submit", "get_transaction_status",
        "get_account", "simulate", "assemble", "submit", "get_transaction_status",
    ]
    payment, donate = (env.transaction.operations[0] for env in ledger.submitted)
    assert isinstance(payment, Payment)
    assert payment.destination.account_id == CREATOR
    assert isinstance(donate, InvokeHostFunction)
    assert donate.host_function.invoke_contract.args[2].i128.lo.uint64 == 10 * XLM

    assert [p.hash for p in progress] == ["mock_tx_001", "mock_tx_002"]
    assert all(p.status == TransactionStatus.PENDING for p in progress)

    # Only the donated-to campaign is dropped
    assert cache.get_campaign(2) is None
    assert cache.get_campaign(3) is not None


async def test_donate_reads_campaign_on_cache_miss(orchestrator, ledger):
    ledger.returns(campaign_xdr(make_campaign(5)))

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 5, "2.5")

    assert result.success
    assert ledger.calls[0] == ("simulate", "get_campaign")


async def test_donate_exactly_remaining_is_allowed(orchestrator, cache):
    cache.set_campaign(1, make_campaign(1, target=100 * XLM, raised=95 * XLM))
    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 5)
    assert result.success


# ── Local guards ──────────────────────────────────────────────────


async def test_donate_over_remaining_is_refused(orchestrator, ledger, cache):
    cache.set_campaign(1, make_campaign(1, target=100 * XLM, raised=95 * XLM))

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 10)

    assert result.status == TransactionStatus.FAIL
    assert result.kind == ErrorKind.PRECONDITION_FAILED
    assert result.error == "Only 5.00 XLM needed to reach target!"
    assert ledger.calls == []


async def test_donate_to_funded_campaign_is_refused(orchestrator, ledger, cache):
    cache.set_campaign(1, make_campaign(1, target=100 * XLM, raised=100 * XLM))

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 1)

    assert result.error == "Campaign has already reached its target!"
    assert ledger.calls == []


async def test_donate_to_ended_campaign_is_refused(orchestrator, ledger, cache):
    cache.set_campaign(1, make_campaign(1, deadline=NOW - 1))

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 1)

    assert result.kind == ErrorKind.PRECONDITION_FAILED
    assert result.error == "Campaign has ended"
    assert ledger.calls == []


async def test_donate_to_missing_campaign(orchestrator, ledger):
    ledger.fail_simulation("HostError: Error(WasmVm, InvalidAction) 'Campaign not found'")

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 99, 1)

    assert result.kind == ErrorKind.PRECONDITION_FAILED
    assert result.error == "Campaign not found"
    assert "submit" not in ledger.methods()


@pytest.mark.parametrize("amount", [0, -1, "0.00000001"])
async def test_donate_non_positive_amount_raises(orchestrator, ledger, amount):
    with pytest.raises(InvalidArgumentError):
        await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, amount)
    assert ledger.calls == []


@pytest.mark.parametrize("amount", [float("inf"), "nan", "-Infinity"])
async def test_donate_non_finite_amount_raises(orchestrator, ledger, amount):
    with pytest.raises(InvalidArgumentError):
        await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, amount)
    assert ledger.calls == []


@pytest.mark.parametrize("campaign_id", [-1, "1", 1.5, True, None])
async def test_donate_bad_campaign_id_raises(orchestrator, ledger, campaign_id):
    with pytest.raises(InvalidArgumentError):
        await orchestrator.donate_to_campaign(TEST_PUBLIC, campaign_id, 1)
    assert ledger.calls == []


# ── Phase 1 failures: nothing moved ───────────────────────────────


async def test_payment_rejected_by_signer(orchestrator, ledger, signer, cache):
    cache.set_campaign(1, make_campaign(1))
    signer.reject = True

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 5)

    assert result.kind == ErrorKind.TRANSACTION_REJECTED
    assert not result.funds_transferred
    assert result.payment_hash is None
    assert "submit" not in ledger.methods()


async def test_payment_failed_on_chain_skips_phase_two(orchestrator, ledger, cache):
    cache.set_campaign(1, make_campaign(1))
    ledger.queue_statuses(LedgerTxStatus.FAILED, code="txFAILED")

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 5)

    assert result.kind == ErrorKind.ON_CHAIN_FAILED
    assert result.hash == "mock_tx_001"
    assert not result.funds_transferred
    assert ledger.methods().count("submit") == 1
    assert "simulate" not in ledger.methods()


async def test_payment_timeout_uses_payment_cap(orchestrator, ledger, cache):
    cache.set_campaign(1, make_campaign(1))
    ledger.queue_statuses(*[LedgerTxStatus.NOT_FOUND] * 11)

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 5)

    assert result.kind == ErrorKind.TIMEOUT
    assert ledger.methods().count("get_transaction_status") == 11
    assert ledger.methods().count("submit") == 1


# ── Phase 2 failures: paid but not recorded ───────────────────────


async def test_record_simulation_failure_after_payment(orchestrator, ledger, cache):
    cache.set_campaign(1, make_campaign(1))
    ledger.fail_simulation("HostError: 'Campaign has ended'")

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 10)

    assert result.status == TransactionStatus.FAIL
    assert result.kind == ErrorKind.SIMULATION_FAILED
    assert result.funds_transferred
    assert result.payment_hash == "mock_tx_001"
    assert result.hash is None
    assert result.error.startswith("Payment of 10.0000000 XLM was sent (tx mock_tx_001)")
    # The record did not land, so the cached campaign is still accurate
    assert cache.get_campaign(1) is not None


async def test_record_failed_on_chain_after_payment(orchestrator, ledger, cache):
    cache.set_campaign(1, make_campaign(1))
    ledger.queue_statuses(LedgerTxStatus.SUCCESS, LedgerTxStatus.FAILED, code="txFAILED")

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 5)

    assert result.kind == ErrorKind.ON_CHAIN_FAILED
    assert result.funds_transferred
    assert result.hash == "mock_tx_002"
    assert result.payment_hash == "mock_tx_001"


async def test_record_rejected_after_payment(orchestrator, ledger, signer, cache):
    cache.set_campaign(1, make_campaign(1))
    original_sign = signer.sign
    calls = 0

    async def sign_once(envelope_xdr, passphrase):
        nonlocal calls
        calls += 1
        if calls > 1:
            signer.reject = True
        return await original_sign(envelope_xdr, passphrase)

    signer.sign = sign_once

    result = await orchestrator.donate_to_campaign(TEST_PUBLIC, 1, 5)

    assert result.kind == ErrorKind.TRANSACTION_REJECTED
    assert result.funds_transferred
    assert ledger.methods().count("submit") == 1
