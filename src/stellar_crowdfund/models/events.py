"""Contract event models deserialized from the Soroban event stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ContractEvent:
    """A decoded crowdfund contract event.

    ``timestamp`` is the local wall-clock time at capture, not ledger close
    time. ``ledger`` is the ordering and cursor key.
    """

    type: str  # "create", "donate", "claim", or the raw topic symbol
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = 0.0
    ledger: int = 0
    id: str = ""
