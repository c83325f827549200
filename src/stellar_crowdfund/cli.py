"""CLI entry point for the stellar_crowdfund client."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime, timezone

import click

from stellar_crowdfund.api.feed import EventFeed
from stellar_crowdfund.api.service import CrowdfundService
from stellar_crowdfund.config import load_config
from stellar_crowdfund.models.campaign import Campaign
from stellar_crowdfund.models.events import ContractEvent
from stellar_crowdfund.models.records import TransactionResult
from stellar_crowdfund.stellar.codec import xlm_str
from stellar_crowdfund.stellar.signer import KeypairSigner

EXPLORER_URL = "https://stellar.expert/explorer/testnet"


def _require_secret(cfg):
    """Exit with error if no keypair secret is configured."""
    if not cfg.keypair_secret:
        click.echo("Error: No keypair secret configured.", err=True)
        click.echo("Set STELLAR_CROWDFUND_SECRET env var or keypair_secret in config.", err=True)
        sys.exit(1)


def _require_contract(cfg):
    """Exit with error if no contract ID is configured."""
    if not cfg.contract_id:
        click.echo("Error: No contract ID configured.", err=True)
        click.echo("Set STELLAR_CROWDFUND_CONTRACT_ID or contract_id in config.", err=True)
        sys.exit(1)


def _fmt_time(ts: int | float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _echo_campaign(c: Campaign) -> None:
    pct = (c.raised * 100 // c.target) if c.target > 0 else 0
    click.echo(f"#{c.id} {c.title}")
    click.echo(f"  Creator:   {c.creator}")
    click.echo(f"  Raised:    {xlm_str(c.raised)} / {xlm_str(c.target)} ({pct}%)")
    click.echo(f"  Deadline:  {_fmt_time(c.deadline)}")
    click.echo(f"  Claimed:   {c.claimed}")
    if c.description:
        click.echo(f"  {c.description}")


def _echo_result(label: str, result: TransactionResult) -> None:
    if result.success:
        click.echo(f"{label} successful!")
        if result.payment_hash:
            click.echo(f"  Payment:  {EXPLORER_URL}/tx/{result.payment_hash}")
        click.echo(f"  Tx hash:  {result.hash}")
        click.echo(f"  Explorer: {EXPLORER_URL}/tx/{result.hash}")
        return

    click.echo(f"\n{label} failed ({result.kind.value if result.kind else 'unknown'}):", err=True)
    click.echo(f"  {result.error}", err=True)
    if result.funds_transferred:
        click.echo("  Funds were transferred; the donation record can be retried.", err=True)
    if result.hash:
        click.echo(f"  Tx hash:  {result.hash}", err=True)
    sys.exit(1)


def _on_pending(result: TransactionResult) -> None:
    click.echo(f"  Submitted {result.hash[:16]}..., waiting for confirmation")


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """stellar-crowdfund - create and fund Soroban crowdfunding campaigns."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show client configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"Network:    {cfg.network}")
    click.echo(f"RPC URL:    {cfg.rpc_url}")
    click.echo(f"Horizon:    {cfg.horizon_url}")
    click.echo(f"Contract:   {cfg.contract_id or '(not set)'}")
    click.echo(f"Cache TTL:  {cfg.cache_ttl:g}s")
    click.echo(f"Secret:     {'***configured***' if cfg.keypair_secret else '(not set)'}")


@cli.command()
@click.argument("address", required=False)
@click.pass_context
def balance(ctx: click.Context, address: str | None) -> None:
    """Show the native balance of ADDRESS (default: configured account)."""
    cfg = load_config(ctx.obj["config_path"])
    if address is None:
        _require_secret(cfg)
        address = KeypairSigner.from_secret(cfg.keypair_secret).public_key

    async def _balance():
        service = CrowdfundService.from_config(cfg)
        stroops = await service.get_balance(address)
        click.echo(f"{address}: {stroops} stroops ({xlm_str(stroops)})")

    asyncio.run(_balance())


@cli.command()
@click.argument("address")
@click.pass_context
def fund(ctx: click.Context, address: str) -> None:
    """Fund ADDRESS from the testnet Friendbot."""
    cfg = load_config(ctx.obj["config_path"])

    async def _fund():
        service = CrowdfundService.from_config(cfg)
        if await service.fund_with_friendbot(address):
            click.echo(f"Funded {address}")
        else:
            click.echo(f"Friendbot could not fund {address}", err=True)
            sys.exit(1)

    asyncio.run(_fund())


# ── Campaign reads ─────────────────────────────────────


@cli.command()
@click.pass_context
def count(ctx: click.Context) -> None:
    """Show the number of campaigns."""
    cfg = load_config(ctx.obj["config_path"])
    _require_contract(cfg)

    async def _count():
        service = CrowdfundService.from_config(cfg)
        click.echo(await service.get_campaign_count())

    asyncio.run(_count())


@cli.command()
@click.argument("campaign_id", type=int)
@click.option("--fresh", is_flag=True, help="Bypass the cache")
@click.pass_context
def show(ctx: click.Context, campaign_id: int, fresh: bool) -> None:
    """Show campaign CAMPAIGN_ID."""
    cfg = load_config(ctx.obj["config_path"])
    _require_contract(cfg)

    async def _show():
        service = CrowdfundService.from_config(cfg)
        campaign = await service.get_campaign(campaign_id, skip_cache=fresh)
        if campaign is None:
            click.echo(f"Campaign {campaign_id} not found.", err=True)
            sys.exit(1)
        _echo_campaign(campaign)

    asyncio.run(_show())


@cli.command("list")
@click.pass_context
def list_campaigns(ctx: click.Context) -> None:
    """List all campaigns."""
    cfg = load_config(ctx.obj["config_path"])
    _require_contract(cfg)

    async def _list():
        service = CrowdfundService.from_config(cfg)
        campaigns = await service.list_campaigns()
        if not campaigns:
            click.echo("No campaigns.")
            return
        for c in campaigns:
            _echo_campaign(c)
            click.echo("")

    asyncio.run(_list())


# ── Campaign writes ────────────────────────────────────


@cli.command()
@click.option("--title", required=True, help="Campaign title")
@click.option("--description", default="", help="Campaign description")
@click.option("--target", type=float, required=True, help="Funding target (XLM)")
@click.option("--days", type=int, default=30, help="Campaign duration in days")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def create(
    ctx: click.Context, title: str, description: str, target: float, days: int, yes: bool,
) -> None:
    """Create a new campaign."""
    cfg = load_config(ctx.obj["config_path"])
    _require_secret(cfg)
    _require_contract(cfg)

    if target <= 0 or days <= 0:
        click.echo("Error: target and days must be positive.", err=True)
        sys.exit(1)

    signer = KeypairSigner.from_secret(cfg.keypair_secret)
    click.echo(f"Creating campaign on {cfg.network}")
    click.echo(f"  Creator:  {signer.public_key}")
    click.echo(f"  Title:    {title}")
    click.echo(f"  Target:   {target} XLM")
    click.echo(f"  Duration: {days} days")
    if not yes:
        click.confirm("\nProceed?", abort=True)

    async def _create():
        service = CrowdfundService.from_config(cfg, signer=signer)
        result = await service.create_campaign(
            signer.public_key, title, description, target, days * 86400,
            on_progress=_on_pending,
        )
        _echo_result("Campaign creation", result)

    asyncio.run(_create())


@cli.command()
@click.argument("campaign_id", type=int)
@click.argument("amount", type=float)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def donate(ctx: click.Context, campaign_id: int, amount: float, yes: bool) -> None:
    """Donate AMOUNT XLM to campaign CAMPAIGN_ID.

    Sends a payment to the creator, then records the donation on the
    contract. These are two transactions.
    """
    cfg = load_config(ctx.obj["config_path"])
    _require_secret(cfg)
    _require_contract(cfg)

    if amount <= 0:
        click.echo("Error: amount must be positive.", err=True)
        sys.exit(1)

    signer = KeypairSigner.from_secret(cfg.keypair_secret)
    if not yes:
        click.confirm(f"Donate {amount} XLM to campaign {campaign_id}?", abort=True)

    async def _donate():
        service = CrowdfundService.from_config(cfg, signer=signer)
        result = await service.donate_to_campaign(
            signer.public_key, campaign_id, amount, on_progress=_on_pending,
        )
        _echo_result("Donation", result)

    asyncio.run(_donate())


# ── Events ─────────────────────────────────────────────


@cli.command()
@click.option("--interval", type=float, default=None, help="Seconds between polls")
@click.pass_context
def watch(ctx: click.Context, interval: float | None) -> None:
    """Stream contract events until interrupted."""
    cfg = load_config(ctx.obj["config_path"])
    _require_contract(cfg)
    feed = EventFeed()

    def _print_batch(events: list[ContractEvent]) -> None:
        for event in feed.extend(events):
            fields = " ".join(f"{k}={v}" for k, v in event.data.items())
            click.echo(f"[ledger {event.ledger}] {event.type} {fields}")

    async def _watch():
        service = CrowdfundService.from_config(cfg)
        service.start_event_polling(_print_batch, interval)
        click.echo("Listening for contract events (Ctrl+C to stop)...")
        try:
            await asyncio.Event().wait()
        finally:
            await service.aclose()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        click.echo("Stopped.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
