"""Amount conversion and SCVal decoding for the crowdfund contract."""

from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

from stellar_sdk import Address, scval, xdr

from stellar_crowdfund.errors import InvalidArgumentError
from stellar_crowdfund.models.campaign import Campaign
from stellar_crowdfund.models.events import ContractEvent
from stellar_crowdfund.models.records import RawEvent

log = logging.getLogger(__name__)

STROOPS_PER_XLM = 10_000_000

_STROOP = Decimal("0.0000001")

# Positional payloads published by the contract, keyed by topic symbol
_EVENT_FIELDS = {
    "create": ("campaign_id", "creator"),
    "donate": ("campaign_id", "donor", "amount"),
    "claim": ("campaign_id", "creator", "raised"),
}


# ── Amounts ────────────────────────────────────────────


def to_stroops(amount: int | float | str | Decimal) -> int:
    """Convert a display amount (XLM) to stroops, flooring extra precision."""
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise InvalidArgumentError(f"not a valid amount: {amount!r}") from exc
    if not value.is_finite():
        raise InvalidArgumentError(f"not a finite amount: {amount!r}")
    return int((value * STROOPS_PER_XLM).to_integral_value(rounding=ROUND_DOWN))


def to_xlm(stroops: int) -> Decimal:
    return (Decimal(stroops) / STROOPS_PER_XLM).quantize(_STROOP)


def xlm_str(stroops: int) -> str:
    """Format stroops as a human-readable XLM string."""
    return f"{to_xlm(stroops)} XLM"


# ── SCVal decoding ─────────────────────────────────────


def _addr_to_str(addr: object) -> str:
    if isinstance(addr, Address):
        return addr.address
    return str(addr)


def scval_to_native(val: xdr.SCVal) -> Any:
    """Decode an SCVal into plain Python values.

    Strings come back as str, addresses as their G.../C... form, integers
    of any width as int, vectors as lists and maps as dicts keyed by the
    decoded key.
    """
    t = val.type
    if t == xdr.SCValType.SCV_VOID:
        return None
    if t == xdr.SCValType.SCV_BOOL:
        return scval.from_bool(val)
    if t == xdr.SCValType.SCV_U32:
        return scval.from_uint32(val)
    if t == xdr.SCValType.SCV_I32:
        return scval.from_int32(val)
    if t == xdr.SCValType.SCV_U64:
        return scval.from_uint64(val)
    if t == xdr.SCValType.SCV_I64:
        return scval.from_int64(val)
    if t == xdr.SCValType.SCV_U128:
        return scval.from_uint128(val)
    if t == xdr.SCValType.SCV_I128:
        return scval.from_int128(val)
    if t == xdr.SCValType.SCV_SYMBOL:
        return scval.from_symbol(val)
    if t == xdr.SCValType.SCV_STRING:
        raw = scval.from_string(val)
        return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
    if t == xdr.SCValType.SCV_BYTES:
        return scval.from_bytes(val)
    if t == xdr.SCValType.SCV_ADDRESS:
        return _addr_to_str(scval.from_address(val))
    if t == xdr.SCValType.SCV_VEC:
        items = val.vec.sc_vec if val.vec is not None else []
        return [scval_to_native(item) for item in items]
    if t == xdr.SCValType.SCV_MAP:
        entries = val.map.sc_map if val.map is not None else []
        return {scval_to_native(e.key): scval_to_native(e.val) for e in entries}
    raise ValueError(f"unsupported SCVal type: {t}")


def decode_scval_xdr(value_xdr: str) -> Any:
    return scval_to_native(xdr.SCVal.from_xdr(value_xdr))


def decode_campaign(campaign_id: int, retval_xdr: str) -> Campaign:
    """Decode the Campaign struct returned by get_campaign()."""
    data = decode_scval_xdr(retval_xdr)
    if not isinstance(data, dict):
        raise ValueError(f"get_campaign returned {type(data).__name__}, expected a struct")
    return Campaign(
        id=campaign_id,
        creator=str(data["creator"]),
        title=str(data["title"]),
        description=str(data["desc"]),
        target=int(data["target"]),
        deadline=int(data["deadline"]),
        raised=int(data["raised"]),
        claimed=bool(data["claimed"]),
    )


def decode_event(raw: RawEvent, captured_at: float) -> ContractEvent | None:
    """Decode a raw contract event. Returns None if it is malformed."""
    try:
        kind = str(decode_scval_xdr(raw.topic[0])) if raw.topic else "unknown"
    except Exception:
        log.debug("Could not decode topic[0] for event %s", raw.id)
        return None

    try:
        payload = decode_scval_xdr(raw.value) if raw.value else {}
    except Exception:
        log.warning("Could not decode value XDR for event %s", raw.id)
        return None

    fields = _EVENT_FIELDS.get(kind)
    if fields and isinstance(payload, list) and len(payload) == len(fields):
        data = dict(zip(fields, payload))
    elif isinstance(payload, dict):
        data = payload
    else:
        data = {"value": payload}

    return ContractEvent(
        type=kind,
        data=data,
        timestamp=captured_at,
        ledger=raw.ledger,
        id=raw.id,
    )
