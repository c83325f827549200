"""Configuration models for the crowdfund client."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TransactionConfig:
    """Fees, timeouts and confirmation caps for write operations."""

    contract_base_fee: int = 1_000_000  # stroops
    payment_base_fee: int = 100_000
    read_base_fee: int = 100
    tx_timeout: int = 300  # seconds
    min_reserve_xlm: str = "2"  # balance required before create()
    confirm_interval: float = 2.0  # seconds between status polls
    contract_confirm_attempts: int = 20
    payment_confirm_attempts: int = 10


@dataclass
class EventConfig:
    """Event feed poller configuration."""

    poll_interval: float = 5.0  # seconds
    lookback_ledgers: int = 1000
    limit: int = 20


@dataclass
class AppConfig:
    """Complete client configuration."""

    # Stellar
    network: str = "testnet"
    rpc_url: str = "https://soroban-testnet.stellar.org"
    horizon_url: str = "https://horizon-testnet.stellar.org"
    friendbot_url: str = "https://friendbot.stellar.org"
    network_passphrase: str = "Test SDF Network ; September 2015"
    contract_id: str = "CCEWBXDQJ2YHQ6NVRQW3OLAJ6MGH2FSDSEQW6L4GSEUPZQRLIFK3UW3F"
    keypair_secret: str = ""  # loaded from env var STELLAR_CROWDFUND_SECRET

    # Cache
    cache_ttl: float = 30.0  # seconds

    transactions: TransactionConfig = field(default_factory=TransactionConfig)
    events: EventConfig = field(default_factory=EventConfig)
