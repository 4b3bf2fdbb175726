"""
Typed accessors for untyped JSON-RPC results.

Each accessor either returns a value of the requested type or raises a
DecodeError naming the field. None of them fall back to a default.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

from corerpc.constants import (
    HASH_LENGTH,
    MAX_FEERATE_SATS_PER_KW,
    MAX_MONEY,
    SAT_PER_KW_PER_SAT_PER_VB,
    SATS_PER_BTC,
    WITNESS_SCALE_FACTOR,
)
from corerpc.errors import (
    MalformedEncodingError,
    MissingFieldError,
    OutOfRangeError,
    TypeMismatchError,
)

Number = int | float | Decimal

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def field_path(prefix: str | None, key: str) -> str:
    """Join a parent path and a key: ("[2]", "txid") -> "[2].txid"."""
    return f"{prefix}.{key}" if prefix else key


def require_object(value: Any, field: str | None = None) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeMismatchError("object", value, field)
    return value


def require_field(obj: dict[str, Any], key: str, prefix: str | None = None) -> Any:
    if key not in obj:
        raise MissingFieldError(field_path(prefix, key))
    return obj[key]


def as_str(value: Any, field: str | None = None) -> str:
    if not isinstance(value, str):
        raise TypeMismatchError("string", value, field)
    return value


def as_int(value: Any, field: str | None = None) -> int:
    # bool is an int subclass, and JSON true is not a number
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeMismatchError("integer", value, field)
    return value


def as_bool(value: Any, field: str | None = None) -> bool:
    if not isinstance(value, bool):
        raise TypeMismatchError("boolean", value, field)
    return value


def as_number(value: Any, field: str | None = None) -> Number:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise TypeMismatchError("number", value, field)
    return value


def require_str(obj: dict[str, Any], key: str, prefix: str | None = None) -> str:
    return as_str(require_field(obj, key, prefix), field_path(prefix, key))


def require_int(obj: dict[str, Any], key: str, prefix: str | None = None) -> int:
    return as_int(require_field(obj, key, prefix), field_path(prefix, key))


def require_bool(obj: dict[str, Any], key: str, prefix: str | None = None) -> bool:
    return as_bool(require_field(obj, key, prefix), field_path(prefix, key))


def require_number(obj: dict[str, Any], key: str, prefix: str | None = None) -> Number:
    return as_number(require_field(obj, key, prefix), field_path(prefix, key))


def optional_number(obj: dict[str, Any], key: str, prefix: str | None = None) -> Number | None:
    """Absent and null both mean "no value"; anything else must be a number."""
    value = obj.get(key)
    if value is None:
        return None
    return as_number(value, field_path(prefix, key))


def as_hex(value: Any, field: str | None = None) -> str:
    """Validate a non-empty, even-length hex string and return it unchanged."""
    text = as_str(value, field)
    if not _HEX_RE.fullmatch(text):
        raise MalformedEncodingError("not a hexadecimal string", field)
    if len(text) % 2:
        raise MalformedEncodingError(f"odd hex length {len(text)}", field)
    return text


def parse_hash(value: Any, field: str | None = None) -> bytes:
    """
    Parse a block hash or txid as shown by the node.

    RPC hex is in display order (most significant byte first); the returned
    bytes are in internal order, i.e. reversed.
    """
    text = as_hex(value, field)
    if len(text) != HASH_LENGTH * 2:
        raise MalformedEncodingError(
            f"hash must be {HASH_LENGTH * 2} hex characters, got {len(text)}", field
        )
    return bytes.fromhex(text)[::-1]


def hash_to_hex(digest: bytes) -> str:
    """Display-order hex of an internal-order hash."""
    return digest[::-1].hex()


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # repr() is the shortest string that round-trips, so 0.1 -> "0.1"
        return Decimal(repr(value))
    return Decimal(value)


def btc_to_sats(value: Number, field: str | None = None) -> int:
    """
    Convert a BTC amount to satoshis without rounding.

    Raises:
        OutOfRangeError: If the amount is negative, above the supply cap, or
            has more precision than one satoshi.
    """
    try:
        amount = _to_decimal(value)
    except (InvalidOperation, ValueError) as e:
        raise MalformedEncodingError(f"invalid amount {value!r}", field) from e

    if not amount.is_finite():
        raise OutOfRangeError(f"amount {value!r} is not finite", field)
    if amount < 0:
        raise OutOfRangeError(f"amount {value!r} is negative", field)

    # Enough precision that scaling by 10^8 is exact and cannot hide a remainder
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + 9)
        sats = amount * SATS_PER_BTC
    if sats != sats.to_integral_value():
        raise OutOfRangeError(f"amount {value!r} is not a whole number of satoshis", field)
    if sats > MAX_MONEY:
        raise OutOfRangeError(f"amount {value!r} exceeds the 21M BTC supply", field)
    return int(sats)


def sats_to_btc(sats: int) -> float:
    """Satoshis to a BTC float suitable for RPC parameters."""
    return round(sats / SATS_PER_BTC, 8)


def btc_per_kvb_to_sat_per_kw(feerate_btc_per_kvbyte: Number, field: str | None = None) -> int:
    """
    Convert a node fee rate from BTC/kvB to sat/kW.

    Multiply by 10^8 to get satoshis, then divide by 4 to go from virtual
    bytes to weight units. Halves round away from zero.

    Example:
        >>> btc_per_kvb_to_sat_per_kw(0.00001000)
        250
    """
    rate = float(feerate_btc_per_kvbyte)
    if not math.isfinite(rate):
        raise OutOfRangeError(f"fee rate {feerate_btc_per_kvbyte!r} is not finite", field)
    if rate < 0:
        raise OutOfRangeError(f"fee rate {feerate_btc_per_kvbyte!r} is negative", field)

    quotient = rate * SATS_PER_BTC / WITNESS_SCALE_FACTOR
    sat_per_kw = int(Decimal(quotient).to_integral_value(rounding=ROUND_HALF_UP))
    if sat_per_kw > MAX_FEERATE_SATS_PER_KW:
        raise OutOfRangeError(f"fee rate {feerate_btc_per_kvbyte!r} is too large", field)
    return sat_per_kw


def sat_per_kw_to_sat_per_vb(sat_per_kw: int) -> float:
    """Fee rate in sat/vB, the unit of fundrawtransaction's fee_rate option."""
    return sat_per_kw / SAT_PER_KW_PER_SAT_PER_VB
