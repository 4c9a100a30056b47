"""Tests for Pool price/quote views, previews and snapshots."""

import pytest

from amm_pool.config import PoolConfig
from amm_pool.errors import (
    DeadlineExpired,
    EmptyPoolPriceUndefined,
    InsufficientReserves,
    InvalidAssetPair,
    NonPositiveAmount,
    SlippageExceeded,
)
from amm_pool.models import PoolSnapshot
from amm_pool.pool import Pool, quote_swap_input, quote_swap_output
from tests.helpers import ALICE, BOB, DEADLINE, TOKEN_A, TOKEN_B, TOKEN_C, ledger_state, make_funded_pool


class TestQuotePrice:
    def test_price_both_directions(self, funded_pool):
        assert funded_pool.quote_price(TOKEN_A, TOKEN_B) == 4 * 10**18
        assert funded_pool.quote_price(TOKEN_B, TOKEN_A) == 25 * 10**16

    def test_price_follows_reserves(self, funded_pool):
        funded_pool.swap(10, 0, TOKEN_A, TOKEN_B, BOB, DEADLINE, sender=BOB)
        assert funded_pool.quote_price(TOKEN_A, TOKEN_B) == 364 * 10**18 // 110

    def test_empty_pool_price_undefined(self, pool):
        with pytest.raises(EmptyPoolPriceUndefined):
            pool.quote_price(TOKEN_A, TOKEN_B)

    @pytest.mark.parametrize("asset_x,asset_y", [(TOKEN_A, TOKEN_A), (TOKEN_A, TOKEN_C)])
    def test_unrecognized_pair(self, funded_pool, asset_x, asset_y):
        with pytest.raises(InvalidAssetPair):
            funded_pool.quote_price(asset_x, asset_y)

    def test_configured_scale(self, clock):
        pool = make_funded_pool(100, 400, clock=clock, config=PoolConfig(price_scale=10**6))
        assert pool.quote_price(TOKEN_A, TOKEN_B) == 4 * 10**6


class TestQuoteSwapOutput:
    def test_pure_formula(self):
        assert Pool.quote_swap_output(10, 100, 400) == 36
        assert quote_swap_output(10, 100, 400) == 36

    def test_independent_of_state(self, funded_pool):
        assert funded_pool.quote_swap_output(10, 1_000, 1_000) == 9
        assert funded_pool.reserves == (100, 400)

    @pytest.mark.parametrize("args", [(0, 100, 400), (10, 0, 400), (10, 100, 0), (10, -1, 400)])
    def test_non_positive(self, args):
        with pytest.raises(NonPositiveAmount):
            Pool.quote_swap_output(*args)

    def test_quote_swap_input(self):
        assert Pool.quote_swap_input(36, 100, 400) == 10
        assert quote_swap_input(37, 100, 400) == 11
        with pytest.raises(InsufficientReserves):
            Pool.quote_swap_input(400, 100, 400)


class TestPreviews:
    """Previews compute exactly what the operation would, without side effects."""

    def test_preview_swap_matches_swap(self, funded_pool):
        before = ledger_state(funded_pool)
        preview = funded_pool.preview_swap(10, TOKEN_A, TOKEN_B)
        assert ledger_state(funded_pool) == before

        actual = funded_pool.swap(10, 0, TOKEN_A, TOKEN_B, BOB, DEADLINE, sender=BOB)
        assert preview == actual

    def test_preview_swap_validates(self, funded_pool, clock):
        with pytest.raises(SlippageExceeded):
            funded_pool.preview_swap(10, TOKEN_A, TOKEN_B, amount_out_min=37)
        with pytest.raises(InvalidAssetPair):
            funded_pool.preview_swap(10, TOKEN_A, TOKEN_C)
        clock.now = DEADLINE + 1
        with pytest.raises(DeadlineExpired):
            funded_pool.preview_swap(10, TOKEN_A, TOKEN_B, deadline=DEADLINE)

    def test_preview_add_liquidity(self, funded_pool):
        before = ledger_state(funded_pool)
        preview = funded_pool.preview_add_liquidity(10, 100)
        assert tuple(preview) == (10, 40, 20)
        assert ledger_state(funded_pool) == before

        reversed_preview = funded_pool.preview_add_liquidity(100, 10, asset_a=TOKEN_B, asset_b=TOKEN_A)
        assert tuple(reversed_preview) == (40, 10, 20)

    def test_preview_add_on_empty_pool(self, pool):
        assert tuple(pool.preview_add_liquidity(100, 400)) == (100, 400, 200)

    def test_preview_remove_liquidity(self, funded_pool):
        assert tuple(funded_pool.preview_remove_liquidity(50)) == (25, 100)
        assert tuple(funded_pool.preview_remove_liquidity(50, sender=ALICE)) == (25, 100)
        assert funded_pool.total_shares == 200


class TestStateViews:
    def test_get_reserves(self, funded_pool):
        assert funded_pool.get_reserves(TOKEN_A) == (100, 400)
        assert funded_pool.get_reserves(TOKEN_B) == (400, 100)
        with pytest.raises(InvalidAssetPair):
            funded_pool.get_reserves(TOKEN_C)

    def test_snapshot(self, funded_pool):
        snap = funded_pool.snapshot()

        assert isinstance(snap, PoolSnapshot)
        assert snap.model_dump() == {
            "asset_a": TOKEN_A,
            "asset_b": TOKEN_B,
            "reserve_a": 100,
            "reserve_b": 400,
            "total_shares": 200,
        }
        assert snap.product == 40_000
        assert not snap.is_empty

    def test_empty_snapshot(self, pool):
        snap = pool.snapshot()
        assert snap.is_empty
        assert snap.product == 0

    def test_assets_are_immutable(self, funded_pool):
        with pytest.raises(AttributeError):
            funded_pool.asset_a = TOKEN_C  # type: ignore[misc]
        assert funded_pool.name == f"{TOKEN_A}/{TOKEN_B}"

    def test_check_invariants_clean(self, funded_pool, pool):
        assert funded_pool.check_invariants() == []
        assert pool.check_invariants() == []
