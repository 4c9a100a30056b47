"""Tests for constant-product pool math."""

import pytest

from amm_pool.errors import EmptyPoolPriceUndefined, InsufficientReserves, NonPositiveAmount
from amm_pool.math import (
    deposit_amounts,
    get_amount_in,
    get_amount_out,
    initial_shares,
    quote,
    redeem_amounts,
    spot_price,
)


class TestGetAmountOut:
    """Tests for the swap output formula."""

    def test_basic_truncates(self):
        """10 in against (100, 400): 4000 / 110 = 36.36 -> 36."""
        assert get_amount_out(10, 100, 400) == 36

    def test_reverse_direction(self):
        assert get_amount_out(40, 400, 100) == 9

    @pytest.mark.parametrize(
        "amount_in,reserve_in,reserve_out",
        [(0, 100, 400), (-1, 100, 400), (10, 0, 400), (10, 100, 0)],
    )
    def test_non_positive_rejected(self, amount_in, reserve_in, reserve_out):
        with pytest.raises(NonPositiveAmount):
            get_amount_out(amount_in, reserve_in, reserve_out)

    def test_never_drains_reserve(self):
        """Output stays strictly below reserve_out even for huge inputs."""
        assert get_amount_out(10**30, 100, 400) < 400

    def test_product_never_decreases(self):
        for amount_in in (1, 7, 10, 99, 1000, 123_456):
            out = get_amount_out(amount_in, 1_000, 3_000)
            assert (1_000 + amount_in) * (3_000 - out) >= 1_000 * 3_000

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            get_amount_out(1.5, 100, 400)  # type: ignore


class TestGetAmountIn:
    """Tests for the exact-output input formula."""

    def test_basic_rounds_up(self):
        assert get_amount_in(36, 100, 400) == 10
        assert get_amount_in(37, 100, 400) == 11

    def test_is_smallest_sufficient_input(self):
        for amount_out in (1, 5, 36, 37, 200, 399):
            amount_in = get_amount_in(amount_out, 100, 400)
            assert get_amount_out(amount_in, 100, 400) >= amount_out
            if amount_in > 1:
                assert get_amount_out(amount_in - 1, 100, 400) < amount_out

    def test_drain_rejected(self):
        with pytest.raises(InsufficientReserves):
            get_amount_in(400, 100, 400)


class TestQuote:
    def test_quote_ratio(self):
        assert quote(10, 100, 400) == 40
        assert quote(3, 400, 100) == 0

    def test_quote_empty_reserves(self):
        with pytest.raises(InsufficientReserves):
            quote(10, 0, 400)


class TestDepositAmounts:
    """Tests for share issuance math."""

    def test_initial_shares_is_isqrt(self):
        assert initial_shares(100, 400) == 200
        assert initial_shares(2, 3) == 2

    def test_empty_pool_uses_desired(self):
        assert deposit_amounts(100, 400, 0, 0, 0) == (100, 400, 200)

    def test_a_limited(self):
        """Excess B is left with the caller."""
        assert deposit_amounts(10, 100, 100, 400, 200) == (10, 40, 20)

    def test_b_limited(self):
        assert deposit_amounts(50, 40, 100, 400, 200) == (10, 40, 20)

    def test_other_side_rounds_up(self):
        """(110, 364, T=200): 20 shares are worth 36.4 B, so 37 is taken."""
        assert deposit_amounts(11, 100, 110, 364, 200) == (11, 37, 20)

    def test_other_side_backs_minted_shares_not_desired_ratio(self):
        """7 A mints 12 shares, worth ceil(12 * 364 / 200) = 22 B, below 7 * 364 // 110 = 23."""
        assert deposit_amounts(7, 100, 110, 364, 200) == (7, 22, 12)

    def test_dust_mints_zero(self):
        assert deposit_amounts(1, 1, 100, 400, 200)[2] == 0

    def test_never_dilutes(self):
        """After any deposit, each old share is backed at least as well as before."""
        reserve_a, reserve_b, supply = 1_003, 7_919, 2_801
        for a_desired, b_desired in [(1, 1), (17, 5), (333, 9_999), (10_000, 20), (5, 5_000)]:
            amount_a, amount_b, shares = deposit_amounts(
                a_desired, b_desired, reserve_a, reserve_b, supply
            )
            assert amount_a <= a_desired and amount_b <= b_desired
            # amount / shares >= reserve / supply, cross-multiplied
            assert amount_a * supply >= shares * reserve_a
            assert amount_b * supply >= shares * reserve_b

    def test_non_positive_desired(self):
        with pytest.raises(NonPositiveAmount):
            deposit_amounts(0, 10, 100, 400, 200)

    def test_inconsistent_pool_rejected(self):
        with pytest.raises(InsufficientReserves):
            deposit_amounts(10, 10, 0, 400, 200)


class TestRedeemAmounts:
    def test_pro_rata_truncates(self):
        assert redeem_amounts(50, 100, 400, 200) == (25, 100)
        assert redeem_amounts(1, 110, 364, 200) == (0, 1)

    def test_full_supply_returns_everything(self):
        assert redeem_amounts(200, 110, 364, 200) == (110, 364)

    def test_no_supply(self):
        with pytest.raises(InsufficientReserves):
            redeem_amounts(1, 0, 0, 0)

    def test_non_positive_shares(self):
        with pytest.raises(NonPositiveAmount):
            redeem_amounts(0, 100, 400, 200)


class TestSpotPrice:
    def test_scaled_price(self):
        assert spot_price(100, 400) == 4 * 10**18
        assert spot_price(400, 100) == 25 * 10**16

    def test_custom_scale(self):
        assert spot_price(3, 10, scale=1_000) == 3_333

    def test_empty_undefined(self):
        with pytest.raises(EmptyPoolPriceUndefined):
            spot_price(0, 0)
