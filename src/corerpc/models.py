"""
Typed values decoded from Bitcoin Core RPC responses.

All models are frozen pydantic dataclasses: built once by a decoder and
compared by value.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Annotated

from pydantic import Field
from pydantic.dataclasses import dataclass

from corerpc.constants import HASH_LENGTH, MAX_MONEY, MAX_VOUT
from corerpc.fields import hash_to_hex

Hash256 = Annotated[bytes, Field(min_length=HASH_LENGTH, max_length=HASH_LENGTH)]


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"


# getblockchaininfo "chain" values
CHAIN_NAMES: dict[str, NetworkType] = {
    "main": NetworkType.MAINNET,
    "test": NetworkType.TESTNET,
    "testnet4": NetworkType.TESTNET,
    "signet": NetworkType.SIGNET,
    "regtest": NetworkType.REGTEST,
}


class AddressType(str, Enum):
    P2PKH = "p2pkh"
    P2SH = "p2sh"
    P2WPKH = "p2wpkh"
    P2WSH = "p2wsh"
    P2TR = "p2tr"
    WITNESS_UNKNOWN = "witness_unknown"


@dataclass(frozen=True)
class Address:
    """A syntactically valid address and the scriptPubKey it pays to."""

    address: str
    network: NetworkType
    address_type: AddressType
    scriptpubkey: bytes

    def is_valid_for_network(self, network: NetworkType) -> bool:
        """
        Check whether the address can be used on the given network.

        Testnet and signet share the "tb" prefix, and base58 test addresses
        are also used on regtest, so the mapping is not one-to-one.
        """
        if self.network == network:
            return True
        if self.network == NetworkType.TESTNET:
            if network == NetworkType.SIGNET:
                return True
            is_base58 = self.address_type in (AddressType.P2PKH, AddressType.P2SH)
            return is_base58 and network == NetworkType.REGTEST
        return False

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class FundedTx:
    """fundrawtransaction result."""

    changepos: int  # -1 when no change output was added
    hex: str

    @property
    def has_change(self) -> bool:
        return self.changepos >= 0


@dataclass(frozen=True)
class RawTx:
    """Bare transaction hex (createrawtransaction, getrawtransaction)."""

    hex: str


@dataclass(frozen=True)
class SignedTx:
    """signrawtransactionwithwallet result."""

    complete: bool
    hex: str


@dataclass(frozen=True)
class NewAddress:
    """getnewaddress result."""

    address: Address


@dataclass(frozen=True)
class FeeResponse:
    """estimatesmartfee result. The rate and the error flag are independent."""

    feerate_sat_per_kw: int | None
    errored: bool


@dataclass(frozen=True)
class MempoolMinFeeResponse:
    """getmempoolinfo result, reduced to the minimum accepted fee rate."""

    feerate_sat_per_kw: int | None
    errored: bool


@dataclass(frozen=True)
class BlockchainInfo:
    """Chain tip reported by getblockchaininfo."""

    latest_height: Annotated[int, Field(ge=0)]
    latest_blockhash: Hash256  # internal byte order
    chain: str

    @property
    def latest_blockhash_hex(self) -> str:
        return hash_to_hex(self.latest_blockhash)

    @property
    def network(self) -> NetworkType | None:
        """Network for the node's chain name, None if the name is unknown."""
        return CHAIN_NAMES.get(self.chain)


@dataclass(frozen=True)
class ListUnspentUtxo:
    txid: Hash256  # internal byte order
    vout: Annotated[int, Field(ge=0, le=MAX_VOUT)]
    amount: Annotated[int, Field(ge=0, le=MAX_MONEY)]  # satoshis
    address: Address

    @property
    def txid_hex(self) -> str:
        return hash_to_hex(self.txid)

    @property
    def outpoint(self) -> str:
        """txid:vout as used in RPC calls and logs."""
        return f"{self.txid_hex}:{self.vout}"


@dataclass(frozen=True)
class ListUnspentResponse:
    """listunspent result, in the order the node returned it."""

    utxos: tuple[ListUnspentUtxo, ...] = ()

    def __iter__(self) -> Iterator[ListUnspentUtxo]:
        return iter(self.utxos)

    def __len__(self) -> int:
        return len(self.utxos)

    def __getitem__(self, index: int) -> ListUnspentUtxo:
        return self.utxos[index]

    @property
    def total_amount(self) -> int:
        return sum(utxo.amount for utxo in self.utxos)
