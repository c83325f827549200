"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from stellar_crowdfund.models.config import AppConfig

NETWORK_PASSPHRASES = {
    "testnet": "Test SDF Network ; September 2015",
    "mainnet": "Public Global Stellar Network ; September 2015",
}


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "STELLAR_CROWDFUND_",
) -> AppConfig:
    """Load client configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (STELLAR_CROWDFUND_SECRET, etc.)
        2. TOML config file
        3. Defaults from AppConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = AppConfig()
    passphrase_set = False

    # ── Stellar section ────────────────────────────────────
    stellar = raw.get("stellar", {})
    if v := stellar.get("network"):
        cfg.network = str(v)
    if v := stellar.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := stellar.get("horizon_url"):
        cfg.horizon_url = str(v)
    if v := stellar.get("friendbot_url"):
        cfg.friendbot_url = str(v)
    if v := stellar.get("contract_id"):
        cfg.contract_id = str(v)
    if v := stellar.get("keypair_secret"):
        cfg.keypair_secret = str(v)
    if v := stellar.get("network_passphrase"):
        cfg.network_passphrase = str(v)
        passphrase_set = True

    # ── Transactions section ───────────────────────────────
    txs = raw.get("transactions", {})
    tx_cfg = cfg.transactions
    if v := txs.get("contract_base_fee"):
        tx_cfg.contract_base_fee = int(v)
    if v := txs.get("payment_base_fee"):
        tx_cfg.payment_base_fee = int(v)
    if v := txs.get("read_base_fee"):
        tx_cfg.read_base_fee = int(v)
    if v := txs.get("tx_timeout"):
        tx_cfg.tx_timeout = int(v)
    if (v := txs.get("min_reserve_xlm")) is not None:
        tx_cfg.min_reserve_xlm = str(v)
    if (v := txs.get("confirm_interval")) is not None:
        tx_cfg.confirm_interval = float(v)
    if v := txs.get("contract_confirm_attempts"):
        tx_cfg.contract_confirm_attempts = int(v)
    if v := txs.get("payment_confirm_attempts"):
        tx_cfg.payment_confirm_attempts = int(v)

    # ── Cache section ──────────────────────────────────────
    cache = raw.get("cache", {})
    if v := cache.get("ttl"):
        cfg.cache_ttl = float(v)

    # ── Events section ─────────────────────────────────────
    events = raw.get("events", {})
    if v := events.get("poll_interval"):
        cfg.events.poll_interval = float(v)
    if v := events.get("lookback_ledgers"):
        cfg.events.lookback_ledgers = int(v)
    if v := events.get("limit"):
        cfg.events.limit = int(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := os.environ.get(f"{env_prefix}SECRET"):
        cfg.keypair_secret = secret
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if horizon := os.environ.get(f"{env_prefix}HORIZON_URL"):
        cfg.horizon_url = horizon
    if cid := os.environ.get(f"{env_prefix}CONTRACT_ID"):
        cfg.contract_id = cid

    # Passphrase follows the network unless set explicitly
    if not passphrase_set and cfg.network in NETWORK_PASSPHRASES:
        cfg.network_passphrase = NETWORK_PASSPHRASES[cfg.network]

    return cfg
