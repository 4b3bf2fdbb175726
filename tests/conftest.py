"""
Shared fixtures: RPC results as Bitcoin Core returns them.
"""

from __future__ import annotations

from typing import Any

import pytest

# BIP173 example witness program
P2WPKH_PROGRAM = "751e76e8199196d454941c45d1b3a323f1433bd6"

MAINNET_P2WPKH = "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"
MAINNET_P2WSH = "bc1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3qccfmv3"
MAINNET_P2TR = "bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqzk5jj0"
MAINNET_P2PKH = "1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2"
MAINNET_P2SH = "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy"
TESTNET_P2WPKH = "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx"
REGTEST_P2WPKH = "bcrt1qw508d6qejxtdg4y5r3zarvary0c5xw7kygt080"

GENESIS_HASH = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"

TX_HEX = (
    "0200000001" + "ab" * 32 + "00000000" + "00" + "ffffffff"
    "01" + "a086010000000000" + "16" + "0014" + P2WPKH_PROGRAM + "00000000"
)


@pytest.fixture
def tx_hex() -> str:
    return TX_HEX


@pytest.fixture
def blockchain_info_result() -> dict[str, Any]:
    return {
        "chain": "main",
        "blocks": 800000,
        "headers": 800000,
        "bestblockhash": GENESIS_HASH,
        "difficulty": 53911173001054.59,
        "mediantime": 1690166725,
        "verificationprogress": 0.9999,
        "initialblockdownload": False,
        "pruned": False,
        "warnings": "",
    }


@pytest.fixture
def mempool_info_result() -> dict[str, Any]:
    return {
        "loaded": True,
        "size": 1234,
        "bytes": 567890,
        "usage": 2345678,
        "total_fee": 0.12345678,
        "maxmempool": 300000000,
        "mempoolminfee": 0.00001000,
        "minrelaytxfee": 0.00001000,
        "incrementalrelayfee": 0.00001000,
        "unbroadcastcount": 0,
        "fullrbf": False,
    }


@pytest.fixture
def list_unspent_result() -> list[dict[str, Any]]:
    return [
        {
            "txid": "aa" * 31 + "01",
            "vout": 0,
            "address": MAINNET_P2WPKH,
            "label": "",
            "scriptPubKey": "0014" + P2WPKH_PROGRAM,
            "amount": 0.5,
            "confirmations": 10,
            "spendable": True,
            "solvable": True,
            "safe": True,
        },
        {
            "txid": "bb" * 31 + "02",
            "vout": 3,
            "address": MAINNET_P2PKH,
            "amount": 1.23456789,
            "confirmations": 1,
            "spendable": True,
            "solvable": True,
            "safe": True,
        },
    ]
