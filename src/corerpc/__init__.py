"""
corerpc - Typed decoding of Bitcoin Core JSON-RPC responses

Turns raw RPC results into immutable typed values or raises a DecodeError.
"""

__version__ = "0.1.0"

from corerpc.address import parse_address
from corerpc.client import BitcoindClient
from corerpc.constants import EXPECTED_MAX_MEMPOOL, SATS_PER_BTC
from corerpc.convert import (
    DECODERS,
    decode_blockchain_info,
    decode_fee_response,
    decode_funded_tx,
    decode_list_unspent,
    decode_mempool_min_fee,
    decode_new_address,
    decode_raw_tx,
    decode_response,
    decode_signed_tx,
    decode_txid,
)
from corerpc.errors import (
    DecodeError,
    InvariantViolationError,
    MalformedEncodingError,
    MissingFieldError,
    OutOfRangeError,
    RPCError,
    TypeMismatchError,
)
from corerpc.fees import ConfirmationTarget, FeeEstimator
from corerpc.fields import btc_per_kvb_to_sat_per_kw, btc_to_sats
from corerpc.models import (
    Address,
    AddressType,
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

__all__ = [
    "Address",
    "AddressType",
    "BitcoindClient",
    "BlockchainInfo",
    "ConfirmationTarget",
    "DECODERS",
    "DecodeError",
    "EXPECTED_MAX_MEMPOOL",
    "FeeEstimator",
    "FeeResponse",
    "FundedTx",
    "InvariantViolationError",
    "ListUnspentResponse",
    "ListUnspentUtxo",
    "MalformedEncodingError",
    "MempoolMinFeeResponse",
    "MissingFieldError",
    "NetworkType",
    "NewAddress",
    "OutOfRangeError",
    "RPCError",
    "RawTx",
    "SATS_PER_BTC",
    "SignedTx",
    "TypeMismatchError",
    "btc_per_kvb_to_sat_per_kw",
    "btc_to_sats",
    "decode_blockchain_info",
    "decode_fee_response",
    "decode_funded_tx",
    "decode_list_unspent",
    "decode_mempool_min_fee",
    "decode_new_address",
    "decode_raw_tx",
    "decode_response",
    "decode_signed_tx",
    "decode_txid",
    "parse_address",
]
