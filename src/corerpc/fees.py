"""
Fee rate estimation on top of the decoded node responses.

This is the layer that decides what a missing or unusable estimate means:
it keeps the last good value (initially a fixed fallback) rather than
failing. A mempool sizing mismatch is the exception and is never hidden.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from corerpc.client import BitcoindClient
from corerpc.constants import FEERATE_FLOOR_SATS_PER_KW
from corerpc.errors import DecodeError, InvariantViolationError, RPCError


class EstimateMode(str, Enum):
    ECONOMICAL = "ECONOMICAL"
    CONSERVATIVE = "CONSERVATIVE"


class ConfirmationTarget(str, Enum):
    MEMPOOL_MINIMUM = "mempool_minimum"
    BACKGROUND = "background"
    NORMAL = "normal"
    HIGH_PRIORITY = "high_priority"


@dataclass(frozen=True)
class TargetPolicy:
    conf_target: int  # blocks
    mode: EstimateMode
    fallback_sat_per_kw: int


TARGET_POLICIES: dict[ConfirmationTarget, TargetPolicy] = {
    ConfirmationTarget.BACKGROUND: TargetPolicy(144, EstimateMode.ECONOMICAL, 253),
    ConfirmationTarget.NORMAL: TargetPolicy(18, EstimateMode.ECONOMICAL, 2000),
    ConfirmationTarget.HIGH_PRIORITY: TargetPolicy(6, EstimateMode.CONSERVATIVE, 5000),
}

MEMPOOL_MINIMUM_FALLBACK = FEERATE_FLOOR_SATS_PER_KW


class FeeEstimator:
    """
    Caches a sat/kW rate per confirmation target.

    The last usable node estimate per target is kept as reported; floors are
    applied when a rate is read, so a fallen mempool minimum lowers them again.
    """

    def __init__(self, client: BitcoindClient):
        self.client = client
        self._mempool_minimum = MEMPOOL_MINIMUM_FALLBACK
        self._estimates: dict[ConfirmationTarget, int] = {
            target: policy.fallback_sat_per_kw for target, policy in TARGET_POLICIES.items()
        }

    async def _fetch_mempool_minimum(self) -> int | None:
        try:
            response = await self.client.get_mempool_min_fee()
        except InvariantViolationError:
            logger.error("Node mempool is not sized as expected, refusing its fee data")
            raise
        except (DecodeError, RPCError) as e:
            logger.warning(f"Mempool minimum fee unavailable: {e}")
            return None

        if response.errored or response.feerate_sat_per_kw is None:
            logger.warning("Node reported no mempool minimum fee")
            return None
        return response.feerate_sat_per_kw

    async def _fetch_estimate(self, target: ConfirmationTarget) -> int | None:
        policy = TARGET_POLICIES[target]
        try:
            response = await self.client.estimate_smart_fee(policy.conf_target, policy.mode.value)
        except (DecodeError, RPCError) as e:
            logger.warning(f"Fee estimate for {target.value} unavailable: {e}")
            return None

        if response.errored or response.feerate_sat_per_kw is None:
            logger.debug(f"No fee estimate for {target.value} ({policy.conf_target} blocks)")
            return None
        return response.feerate_sat_per_kw

    async def refresh(self) -> dict[ConfirmationTarget, int]:
        """
        Query the node for every target and update the cache.

        Returns:
            Snapshot of the floored rates after the update

        Raises:
            InvariantViolationError: If the node's mempool size is unexpected
            httpx.HTTPError: On transport failures
        """
        mempool_min = await self._fetch_mempool_minimum()
        if mempool_min is not None:
            self._mempool_minimum = mempool_min

        for target in TARGET_POLICIES:
            rate = await self._fetch_estimate(target)
            if rate is not None:
                self._estimates[target] = rate

        rates = self.snapshot()
        by_name = {target.value: rate for target, rate in rates.items()}
        logger.debug(f"Fee rates (sat/kW): {by_name}")
        return rates

    def snapshot(self) -> dict[ConfirmationTarget, int]:
        return {target: self.get_est_sat_per_1000_weight(target) for target in ConfirmationTarget}

    def get_est_sat_per_1000_weight(self, target: ConfirmationTarget) -> int:
        floor = max(self._mempool_minimum, FEERATE_FLOOR_SATS_PER_KW)
        if target == ConfirmationTarget.MEMPOOL_MINIMUM:
            return floor
        return max(self._estimates[target], floor)
