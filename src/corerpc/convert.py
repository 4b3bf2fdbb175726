"""
Conversions from raw Bitcoin Core RPC results to typed values.

There is one decoder per response shape. The caller knows which RPC it
issued and picks the decoder, either directly or through decode_response().
Decoders are pure: no I/O, no logging, no defaults for missing data. Any
problem raises a DecodeError subclass from corerpc.errors.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from corerpc.address import parse_address
from corerpc.constants import EXPECTED_MAX_MEMPOOL, MAX_VOUT
from corerpc.errors import (
    InvariantViolationError,
    MalformedEncodingError,
    OutOfRangeError,
    TypeMismatchError,
)
from corerpc.fields import (
    as_hex,
    as_number,
    as_str,
    btc_per_kvb_to_sat_per_kw,
    btc_to_sats,
    field_path,
    optional_number,
    parse_hash,
    require_bool,
    require_field,
    require_int,
    require_object,
    require_str,
)
from corerpc.models import (
    BlockchainInfo,
    FeeResponse,
    FundedTx,
    ListUnspentResponse,
    ListUnspentUtxo,
    MempoolMinFeeResponse,
    NetworkType,
    NewAddress,
    RawTx,
    SignedTx,
)


def decode_funded_tx(raw: Any) -> FundedTx:
    obj = require_object(raw)
    return FundedTx(
        changepos=require_int(obj, "changepos"),
        hex=as_hex(require_str(obj, "hex"), "hex"),
    )


def decode_raw_tx(raw: Any) -> RawTx:
    """The whole result is the transaction hex."""
    return RawTx(hex=as_hex(raw))


def decode_signed_tx(raw: Any) -> SignedTx:
    """Incomplete signatures still come with the partially signed hex."""
    obj = require_object(raw)
    return SignedTx(
        hex=as_hex(require_str(obj, "hex"), "hex"),
        complete=require_bool(obj, "complete"),
    )


def decode_new_address(raw: Any, network: NetworkType | None = None) -> NewAddress:
    return NewAddress(address=parse_address(as_str(raw), network))


def _errored(obj: dict[str, Any]) -> bool:
    # Absent and null are the same here: only a non-null "errors" counts
    return obj.get("errors") is not None


def _optional_feerate(obj: dict[str, Any], key: str) -> int | None:
    feerate = optional_number(obj, key)
    if feerate is None:
        return None
    return btc_per_kvb_to_sat_per_kw(feerate, key)


def decode_fee_response(raw: Any) -> FeeResponse:
    """
    Decode estimatesmartfee.

    The node may return "errors" alongside or instead of "feerate". The two
    are read independently: a missing rate is None whether or not errors
    were reported.
    """
    obj = require_object(raw)
    return FeeResponse(
        errored=_errored(obj),
        feerate_sat_per_kw=_optional_feerate(obj, "feerate"),
    )


def decode_mempool_min_fee(raw: Any) -> MempoolMinFeeResponse:
    """
    Decode getmempoolinfo into the mempool minimum fee.

    Raises:
        InvariantViolationError: If the node's maxmempool differs from
            EXPECTED_MAX_MEMPOOL. Its minimum fee would then reflect a
            different eviction policy than the one callers plan for.
    """
    obj = require_object(raw)
    errored = _errored(obj)

    max_mempool = require_int(obj, "maxmempool")
    if max_mempool != EXPECTED_MAX_MEMPOOL:
        raise InvariantViolationError(
            f"node maxmempool is {max_mempool}, expected {EXPECTED_MAX_MEMPOOL}",
            "maxmempool",
        )

    return MempoolMinFeeResponse(
        errored=errored,
        feerate_sat_per_kw=_optional_feerate(obj, "mempoolminfee"),
    )


def decode_blockchain_info(raw: Any) -> BlockchainInfo:
    obj = require_object(raw)

    height = require_int(obj, "blocks")
    if height < 0:
        raise OutOfRangeError(f"negative block height {height}", "blocks")

    return BlockchainInfo(
        latest_height=height,
        latest_blockhash=parse_hash(require_field(obj, "bestblockhash"), "bestblockhash"),
        chain=require_str(obj, "chain"),
    )


def _decode_unspent(raw: Any, index: int, network: NetworkType | None) -> ListUnspentUtxo:
    prefix = f"[{index}]"
    obj = require_object(raw, prefix)

    # A string amount is an unparseable number, other non-numbers a type error
    amount = require_field(obj, "amount", prefix)
    if isinstance(amount, str):
        raise MalformedEncodingError(
            f"non-numeric amount {amount!r}", field_path(prefix, "amount")
        )

    vout = require_int(obj, "vout", prefix)
    if not 0 <= vout <= MAX_VOUT:
        raise OutOfRangeError(f"output index {vout} out of range", field_path(prefix, "vout"))

    return ListUnspentUtxo(
        txid=parse_hash(require_field(obj, "txid", prefix), field_path(prefix, "txid")),
        vout=vout,
        amount=btc_to_sats(
            as_number(amount, field_path(prefix, "amount")), field_path(prefix, "amount")
        ),
        address=parse_address(
            require_str(obj, "address", prefix), network, field_path(prefix, "address")
        ),
    )


def decode_list_unspent(raw: Any, network: NetworkType | None = None) -> ListUnspentResponse:
    """
    Decode listunspent.

    Every element must decode; the first failing element aborts the whole
    list and its index appears in the error's field path.
    """
    if not isinstance(raw, list):
        raise TypeMismatchError("array", raw)
    return ListUnspentResponse(
        utxos=tuple(_decode_unspent(item, i, network) for i, item in enumerate(raw))
    )


def decode_txid(raw: Any) -> bytes:
    """sendrawtransaction result: the txid, returned in internal byte order."""
    return parse_hash(raw)


# RPC method name -> decoder for its result
DECODERS: dict[str, Callable[[Any], Any]] = {
    "createrawtransaction": decode_raw_tx,
    "fundrawtransaction": decode_funded_tx,
    "signrawtransactionwithwallet": decode_signed_tx,
    "sendrawtransaction": decode_txid,
    "getnewaddress": decode_new_address,
    "estimatesmartfee": decode_fee_response,
    "getmempoolinfo": decode_mempool_min_fee,
    "getblockchaininfo": decode_blockchain_info,
    "listunspent": decode_list_unspent,
}


def decode_response(method: str, raw: Any) -> Any:
    """
    Decode the result of the named RPC method.

    Raises:
        KeyError: If no decoder is registered for the method
        DecodeError: If the result does not match the method's shape
    """
    return DECODERS[method](raw)
