"""
Tests for fallback pricing from a V3 pool's slot0.
"""

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fakes import sqrt_price_x96_from_price
from pairarb.exceptions import MissingDecimals, PoolMismatch
from pairarb.pricing import (
    Q96,
    PoolSnapshot,
    deduct_fee,
    fallback_amount_out,
    price_1_per_0,
)

TOKEN0 = "0x" + "aa" * 20
TOKEN1 = "0x" + "bb" * 20
OTHER = "0x" + "cc" * 20


def snapshot(sqrt_price_x96=Q96, decimals0=18, decimals1=18, **kwargs):
    return PoolSnapshot(
        address="0x" + "99" * 20,
        token0=kwargs.get("token0", TOKEN0),
        token1=kwargs.get("token1", TOKEN1),
        sqrt_price_x96=sqrt_price_x96,
        decimals0=decimals0,
        decimals1=decimals1,
    )


class TestFallbackIdentity:
    """Price 1.0 with equal decimals and no fee"""

    @pytest.mark.parametrize("amount", [0, 1, 10**6, 10**18, 123456789 * 10**18])
    def test_zero_for_one_identity(self, amount):
        assert fallback_amount_out(snapshot(), TOKEN0, TOKEN1, amount, 0) == amount

    @pytest.mark.parametrize("amount", [1, 10**18])
    def test_one_for_zero_identity(self, amount):
        assert fallback_amount_out(snapshot(), TOKEN1, TOKEN0, amount, 0) == amount

    def test_address_case_ignored(self):
        out = fallback_amount_out(snapshot(), TOKEN0.upper().replace("0X", "0x"), TOKEN1, 100, 0)
        assert out == 100


class TestFeeMonotonicity:
    @pytest.mark.parametrize("fee_low,fee_high", [(0, 100), (100, 500), (500, 3000), (3000, 10000)])
    def test_higher_fee_less_output(self, fee_low, fee_high):
        amount = 1000 * 10**18
        low = fallback_amount_out(snapshot(), TOKEN0, TOKEN1, amount, fee_low)
        high = fallback_amount_out(snapshot(), TOKEN0, TOKEN1, amount, fee_high)
        assert high < low

    def test_fee_deducted_from_input(self):
        # 0.05% of 1000 USDC at price 1.0
        assert fallback_amount_out(snapshot(), TOKEN0, TOKEN1, 1000 * 10**6, 500) == 999_500_000

    def test_deduct_fee_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            deduct_fee(100, 1_000_000)
        with pytest.raises(ValueError):
            deduct_fee(100, -1)


class TestDirectionSymmetry:
    @given(st.integers(min_value=1, max_value=10**30))
    def test_round_trip_within_one_unit(self, amount):
        # USDC (6) as token0, vUSD (18) as token1, human price 1.0045
        price = Decimal("1.0045") * Decimal(10**12)
        snap = snapshot(sqrt_price_x96_from_price(price), decimals0=6, decimals1=18)
        out = fallback_amount_out(snap, TOKEN0, TOKEN1, amount, 0)
        back = fallback_amount_out(snap, TOKEN1, TOKEN0, out, 0)
        assert amount - 1 <= back <= amount

    def test_exact_decimal_scaling(self):
        # 1 token0 (6 decimals) = 1 token1 (18 decimals)
        sqrt_price = sqrt_price_x96_from_price(Decimal(10**12))
        assert sqrt_price == 10**6 * Q96
        snap = snapshot(sqrt_price, decimals0=6, decimals1=18)
        assert fallback_amount_out(snap, TOKEN0, TOKEN1, 1000 * 10**6, 0) == 1000 * 10**18
        assert fallback_amount_out(snap, TOKEN1, TOKEN0, 1000 * 10**18, 0) == 1000 * 10**6


class TestHumanPrice:
    def test_price_rescaled_by_decimals(self):
        snap = snapshot(10**6 * Q96, decimals0=6, decimals1=18)
        assert price_1_per_0(snap) == Decimal(1)

    def test_price_equal_decimals(self):
        snap = snapshot(2 * Q96)
        assert price_1_per_0(snap) == Decimal(4)


class TestPreconditions:
    def test_pool_mismatch(self):
        with pytest.raises(PoolMismatch) as exc:
            fallback_amount_out(snapshot(), TOKEN0, OTHER, 100, 500)
        assert exc.value.token_out == OTHER

    def test_same_token_is_mismatch(self):
        with pytest.raises(PoolMismatch):
            fallback_amount_out(snapshot(), TOKEN0, TOKEN0, 100, 500)

    def test_missing_decimals(self):
        with pytest.raises(MissingDecimals) as exc:
            fallback_amount_out(snapshot(decimals1=None), TOKEN0, TOKEN1, 100, 500)
        assert exc.value.assets == (TOKEN1,)

    def test_mismatch_checked_before_decimals(self):
        with pytest.raises(PoolMismatch):
            fallback_amount_out(snapshot(decimals0=None), OTHER, TOKEN1, 100, 500)

    def test_zero_price_rejected(self):
        with pytest.raises(ValueError):
            fallback_amount_out(snapshot(sqrt_price_x96=0), TOKEN1, TOKEN0, 100, 0)
