"""
Bitcoin address parsing.

Supports:
- Segwit v0 (bech32): P2WPKH, P2WSH
- Segwit v1+ (bech32m): P2TR and future witness versions
- Legacy base58check: P2PKH, P2SH
"""

from __future__ import annotations

import base58
from bip_utils import Bech32ChecksumError, SegwitBech32Decoder

from corerpc.errors import MalformedEncodingError
from corerpc.models import Address, AddressType, NetworkType

# Bech32 human readable parts
SEGWIT_HRPS: dict[str, NetworkType] = {
    "bc": NetworkType.MAINNET,
    "tb": NetworkType.TESTNET,  # also signet
    "bcrt": NetworkType.REGTEST,
}

# Base58check version bytes -> (network, type)
BASE58_VERSIONS: dict[int, tuple[NetworkType, AddressType]] = {
    0x00: (NetworkType.MAINNET, AddressType.P2PKH),
    0x05: (NetworkType.MAINNET, AddressType.P2SH),
    0x6F: (NetworkType.TESTNET, AddressType.P2PKH),  # also signet, regtest
    0xC4: (NetworkType.TESTNET, AddressType.P2SH),
}


def _witness_scriptpubkey(witver: int, witprog: bytes) -> bytes:
    # OP_0 for v0, OP_1..OP_16 (0x51..0x60) otherwise
    opcode = 0x00 if witver == 0 else 0x50 + witver
    return bytes([opcode, len(witprog)]) + witprog


def _parse_segwit(text: str, field: str | None) -> Address:
    hrp = text[: text.rfind("1")].lower()
    network = SEGWIT_HRPS.get(hrp)
    if network is None:
        raise MalformedEncodingError(f"unknown address prefix {hrp!r}", field)

    # v0 must carry a bech32 checksum, v1+ a bech32m one
    try:
        witver, witprog = SegwitBech32Decoder.Decode(hrp, text)
    except (Bech32ChecksumError, ValueError) as e:
        raise MalformedEncodingError(f"invalid bech32 address: {text} ({e})", field) from e

    if witver == 0:
        address_type = AddressType.P2WPKH if len(witprog) == 20 else AddressType.P2WSH
    elif witver == 1 and len(witprog) == 32:
        address_type = AddressType.P2TR
    else:
        address_type = AddressType.WITNESS_UNKNOWN

    return Address(
        address=text,
        network=network,
        address_type=address_type,
        scriptpubkey=_witness_scriptpubkey(witver, witprog),
    )


def _parse_base58(text: str, field: str | None) -> Address:
    try:
        decoded = base58.b58decode_check(text)
    except ValueError as e:
        raise MalformedEncodingError(f"invalid base58 address: {text} ({e})", field) from e

    if len(decoded) != 21:
        raise MalformedEncodingError(f"invalid base58 payload length {len(decoded)}", field)

    version, payload = decoded[0], decoded[1:]
    if version not in BASE58_VERSIONS:
        raise MalformedEncodingError(f"unknown address version {version:#04x}", field)
    network, address_type = BASE58_VERSIONS[version]

    if address_type == AddressType.P2PKH:
        # OP_DUP OP_HASH160 <20 bytes> OP_EQUALVERIFY OP_CHECKSIG
        scriptpubkey = bytes([0x76, 0xA9, 0x14]) + payload + bytes([0x88, 0xAC])
    else:
        # OP_HASH160 <20 bytes> OP_EQUAL
        scriptpubkey = bytes([0xA9, 0x14]) + payload + bytes([0x87])

    return Address(
        address=text,
        network=network,
        address_type=address_type,
        scriptpubkey=scriptpubkey,
    )


def parse_address(
    text: str, network: NetworkType | None = None, field: str | None = None
) -> Address:
    """
    Parse and validate an address string.

    Args:
        text: Address as returned by the node
        network: If given, the address must be usable on this network
        field: Field path reported in errors

    Returns:
        Validated Address

    Raises:
        MalformedEncodingError: On bad checksum, unknown prefix/version,
            invalid witness program or network mismatch
    """
    if not text:
        raise MalformedEncodingError("empty address", field)

    if "1" in text and text[: text.rfind("1")].lower() in SEGWIT_HRPS:
        address = _parse_segwit(text, field)
    else:
        address = _parse_base58(text, field)

    if network is not None and not address.is_valid_for_network(network):
        raise MalformedEncodingError(
            f"address {text} belongs to {address.network.value}, expected {network.value}",
            field,
        )
    return address
