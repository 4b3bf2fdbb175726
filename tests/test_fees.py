"""
Tests for corerpc.fees
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from corerpc.errors import InvariantViolationError, MalformedEncodingError, RPCError
from corerpc.fees import (
    TARGET_POLICIES,
    ConfirmationTarget,
    EstimateMode,
    FeeEstimator,
)
from corerpc.models import FeeResponse, MempoolMinFeeResponse


def _mock_client(
    mempool_min: int | None = 253,
    estimates: dict[int, FeeResponse] | None = None,
) -> MagicMock:
    client = MagicMock()
    client.get_mempool_min_fee = AsyncMock(
        return_value=MempoolMinFeeResponse(feerate_sat_per_kw=mempool_min, errored=False)
    )
    estimates = estimates or {}

    async def estimate(conf_target: int, mode: str) -> FeeResponse:
        return estimates.get(conf_target, FeeResponse(feerate_sat_per_kw=None, errored=True))

    client.estimate_smart_fee = AsyncMock(side_effect=estimate)
    return client


class TestFeeEstimatorDefaults:
    def test_fallbacks_before_refresh(self) -> None:
        estimator = FeeEstimator(_mock_client())
        assert estimator.get_est_sat_per_1000_weight(ConfirmationTarget.MEMPOOL_MINIMUM) == 253
        assert estimator.get_est_sat_per_1000_weight(ConfirmationTarget.BACKGROUND) == 253
        assert estimator.get_est_sat_per_1000_weight(ConfirmationTarget.NORMAL) == 2000
        assert estimator.get_est_sat_per_1000_weight(ConfirmationTarget.HIGH_PRIORITY) == 5000

    def test_policies(self) -> None:
        assert TARGET_POLICIES[ConfirmationTarget.HIGH_PRIORITY].mode == EstimateMode.CONSERVATIVE
        assert TARGET_POLICIES[ConfirmationTarget.BACKGROUND].conf_target == 144


class TestFeeEstimatorRefresh:
    @pytest.mark.asyncio
    async def test_uses_node_estimates(self) -> None:
        client = _mock_client(
            estimates={
                144: FeeResponse(feerate_sat_per_kw=300, errored=False),
                18: FeeResponse(feerate_sat_per_kw=1500, errored=False),
                6: FeeResponse(feerate_sat_per_kw=7000, errored=False),
            }
        )
        estimator = FeeEstimator(client)
        rates = await estimator.refresh()

        assert rates[ConfirmationTarget.BACKGROUND] == 300
        assert rates[ConfirmationTarget.NORMAL] == 1500
        assert rates[ConfirmationTarget.HIGH_PRIORITY] == 7000
        client.estimate_smart_fee.assert_any_await(6, "CONSERVATIVE")
        client.estimate_smart_fee.assert_any_await(18, "ECONOMICAL")

    @pytest.mark.asyncio
    async def test_errored_estimate_keeps_fallback(self) -> None:
        estimator = FeeEstimator(_mock_client())
        rates = await estimator.refresh()
        assert rates[ConfirmationTarget.NORMAL] == 2000
        assert rates[ConfirmationTarget.HIGH_PRIORITY] == 5000

    @pytest.mark.asyncio
    async def test_errored_with_rate_is_ignored(self) -> None:
        client = _mock_client(estimates={18: FeeResponse(feerate_sat_per_kw=900, errored=True)})
        rates = await FeeEstimator(client).refresh()
        assert rates[ConfirmationTarget.NORMAL] == 2000

    @pytest.mark.asyncio
    async def test_keeps_last_good_value(self) -> None:
        client = _mock_client(estimates={18: FeeResponse(feerate_sat_per_kw=1200, errored=False)})
        estimator = FeeEstimator(client)
        await estimator.refresh()
        assert estimator.get_est_sat_per_1000_weight(ConfirmationTarget.NORMAL) == 1200

        client.estimate_smart_fee.side_effect = MalformedEncodingError("bad", "feerate")
        await estimator.refresh()
        assert estimator.get_est_sat_per_1000_weight(ConfirmationTarget.NORMAL) == 1200

    @pytest.mark.asyncio
    async def test_rpc_error_treated_as_no_data(self) -> None:
        client = _mock_client()
        client.estimate_smart_fee.side_effect = RPCError("estimatesmartfee", -32603, "boom")
        rates = await FeeEstimator(client).refresh()
        assert rates[ConfirmationTarget.NORMAL] == 2000

    @pytest.mark.asyncio
    async def test_mempool_minimum_floors_estimates(self) -> None:
        client = _mock_client(
            mempool_min=3000,
            estimates={144: FeeResponse(feerate_sat_per_kw=300, errored=False)},
        )
        rates = await FeeEstimator(client).refresh()
        assert rates[ConfirmationTarget.MEMPOOL_MINIMUM] == 3000
        assert rates[ConfirmationTarget.BACKGROUND] == 3000
        assert rates[ConfirmationTarget.NORMAL] == 3000
        assert rates[ConfirmationTarget.HIGH_PRIORITY] == 5000

    @pytest.mark.asyncio
    async def test_floor_follows_falling_mempool_minimum(self) -> None:
        """A mempool spike lifts the rates only while it lasts."""
        client = _mock_client(
            mempool_min=3000,
            estimates={18: FeeResponse(feerate_sat_per_kw=1200, errored=False)},
        )
        estimator = FeeEstimator(client)
        rates = await estimator.refresh()
        assert rates[ConfirmationTarget.BACKGROUND] == 3000
        assert rates[ConfirmationTarget.NORMAL] == 3000

        client.get_mempool_min_fee.return_value = MempoolMinFeeResponse(
            feerate_sat_per_kw=1000, errored=False
        )
        client.estimate_smart_fee.side_effect = RPCError("estimatesmartfee", -32603, "boom")
        rates = await estimator.refresh()
        assert rates[ConfirmationTarget.MEMPOOL_MINIMUM] == 1000
        assert rates[ConfirmationTarget.BACKGROUND] == 1000
        assert rates[ConfirmationTarget.NORMAL] == 1200
        assert rates[ConfirmationTarget.HIGH_PRIORITY] == 5000
        assert estimator.snapshot() == rates

    @pytest.mark.asyncio
    async def test_relay_floor(self) -> None:
        client = _mock_client(
            mempool_min=250,
            estimates={144: FeeResponse(feerate_sat_per_kw=250, errored=False)},
        )
        rates = await FeeEstimator(client).refresh()
        assert rates[ConfirmationTarget.MEMPOOL_MINIMUM] == 253
        assert rates[ConfirmationTarget.BACKGROUND] == 253

    @pytest.mark.asyncio
    async def test_missing_mempool_minimum_keeps_previous(self) -> None:
        client = _mock_client(mempool_min=None)
        rates = await FeeEstimator(client).refresh()
        assert rates[ConfirmationTarget.MEMPOOL_MINIMUM] == 253

    @pytest.mark.asyncio
    async def test_mempool_size_mismatch_propagates(self) -> None:
        client = _mock_client()
        client.get_mempool_min_fee.side_effect = InvariantViolationError(
            "node maxmempool is 5, expected 300000000", "maxmempool"
        )
        with pytest.raises(InvariantViolationError):
            await FeeEstimator(client).refresh()
        client.estimate_smart_fee.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self) -> None:
        client = _mock_client()
        client.get_mempool_min_fee.side_effect = httpx.ConnectError("refused")
        with pytest.raises(httpx.ConnectError):
            await FeeEstimator(client).refresh()
