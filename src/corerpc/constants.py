"""
Bitcoin unit and node policy constants.

Bitcoin Core reports amounts in BTC and fee rates in BTC per 1000 virtual
bytes. Everything handed to callers is in satoshis, and fee rates are in
satoshis per 1000 weight units (sat/kW).
"""

from __future__ import annotations

# 1 BTC = 10^8 satoshis
SATS_PER_BTC = 100_000_000

# Total supply cap, used as the upper bound for any single amount
MAX_MONEY = 21_000_000 * SATS_PER_BTC  # satoshis

# One virtual byte is four weight units
WITNESS_SCALE_FACTOR = 4

# sat/kW per sat/vB: 1000 weight units are 250 virtual bytes
SAT_PER_KW_PER_SAT_PER_VB = 1000 // WITNESS_SCALE_FACTOR  # 250

# Fee rates are carried as unsigned 32-bit values
MAX_FEERATE_SATS_PER_KW = 0xFFFF_FFFF

# Lowest rate the node will relay (1 sat/vB), rounded up from 250 sat/kW
FEERATE_FLOOR_SATS_PER_KW = 253

# Mempool size (-maxmempool, bytes) this layer is calibrated for.
# getmempoolinfo reports it as "maxmempool"; a node sized differently evicts
# at different fee levels, so its mempoolminfee is not comparable.
EXPECTED_MAX_MEMPOOL = 300_000_000

# Output index range
MAX_VOUT = 0xFFFF_FFFF

# Block and transaction ids are double-SHA256 digests
HASH_LENGTH = 32  # bytes
