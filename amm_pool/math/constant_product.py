"""Constant-product pool math.

Pure integer formulas for a fee-less x * y = k pool. Nothing here touches pool
state; Pool feeds current reserves in and commits whatever comes out.

Rounding always favours the pool:
- swap output truncates, so reserve_in' * reserve_out' >= reserve_in * reserve_out
- exact-output input rounds up
- redemption truncates, so a holder never receives more than pro rata
- the non-limiting side of a deposit rounds up, so minting never dilutes
"""

from __future__ import annotations

from amm_pool.constants import PRICE_SCALE
from amm_pool.errors import EmptyPoolPriceUndefined, InsufficientReserves, NonPositiveAmount
from amm_pool.safe_int import S


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Calculate output amount using constant product formula.

    Formula: amount_out = (amount_in * reserve_out) / (reserve_in + amount_in)

    Args:
        amount_in: Input asset amount
        reserve_in: Reserve of input asset in pool
        reserve_out: Reserve of output asset in pool

    Returns:
        Output asset amount (truncated)

    Raises:
        NonPositiveAmount: If any argument is zero or negative
    """
    _require_positive(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out)

    return S(amount_in).mul_div(reserve_out, S(reserve_in) + amount_in).value


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """Calculate the smallest input that yields at least amount_out.

    Formula: amount_in = ceil(reserve_in * amount_out / (reserve_out - amount_out))

    Raises:
        NonPositiveAmount: If any argument is zero or negative
        InsufficientReserves: If amount_out would drain the output reserve
    """
    _require_positive(amount_out=amount_out, reserve_in=reserve_in, reserve_out=reserve_out)
    if amount_out >= reserve_out:
        raise InsufficientReserves(
            f"Cannot drain full reserve: amount_out ({amount_out}) >= reserve_out ({reserve_out})"
        )

    return S(reserve_in).mul_div(amount_out, S(reserve_out) - amount_out, round_up=True).value


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Amount of B equivalent to amount_a at the current reserve ratio (truncated)."""
    _require_positive(amount_a=amount_a)
    if reserve_a <= 0 or reserve_b <= 0:
        raise InsufficientReserves(f"Reserves must be positive: ({reserve_a}, {reserve_b})")
    return S(amount_a).mul_div(reserve_b, reserve_a).value


def initial_shares(amount_a: int, amount_b: int) -> int:
    """Shares minted by the first deposit: floor(sqrt(amount_a * amount_b))."""
    _require_positive(amount_a=amount_a, amount_b=amount_b)
    return (S(amount_a) * S(amount_b)).isqrt().value


def deposit_amounts(
    amount_a_desired: int,
    amount_b_desired: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> tuple[int, int, int]:
    """Compute the accepted amounts and shares for a deposit.

    Empty pool (total_shares == 0):
        accepted = desired, shares = isqrt(a * b)

    Funded pool:
        ratio_a = a_desired * T // reserve_a
        ratio_b = b_desired * T // reserve_b
        shares = min(ratio_a, ratio_b)

    The limiting asset is taken in full. The other side is the smallest amount
    that still backs the minted shares at the current reserve ratio,
    ceil(shares * reserve_other / T), which never exceeds its desired amount.

    Returns:
        Tuple of (amount_a, amount_b, shares). shares may be 0 for dust deposits;
        the caller decides whether that is acceptable.

    Raises:
        NonPositiveAmount: If a desired amount is zero or negative
        InsufficientReserves: If the pool has shares but an empty reserve
    """
    _require_positive(amount_a_desired=amount_a_desired, amount_b_desired=amount_b_desired)

    if total_shares == 0:
        return amount_a_desired, amount_b_desired, initial_shares(amount_a_desired, amount_b_desired)

    if reserve_a <= 0 or reserve_b <= 0:
        raise InsufficientReserves(
            f"Pool has {total_shares} shares but reserves ({reserve_a}, {reserve_b})"
        )

    ratio_a = S(amount_a_desired).mul_div(total_shares, reserve_a)
    ratio_b = S(amount_b_desired).mul_div(total_shares, reserve_b)

    if ratio_a <= ratio_b:
        shares = ratio_a
        amount_a = S(amount_a_desired)
        amount_b = shares.mul_div(reserve_b, total_shares, round_up=True)
    else:
        shares = ratio_b
        amount_a = shares.mul_div(reserve_a, total_shares, round_up=True)
        amount_b = S(amount_b_desired)

    # ceil(floor(d * T / R) * R / T) <= d
    assert amount_a <= amount_a_desired and amount_b <= amount_b_desired

    return amount_a.value, amount_b.value, shares.value


def redeem_amounts(
    shares: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> tuple[int, int]:
    """Compute pro-rata amounts returned for burning shares.

    Formula:
        amount_a = floor(shares * reserve_a / total_shares)
        amount_b = floor(shares * reserve_b / total_shares)

    Raises:
        NonPositiveAmount: If shares is zero or negative
        InsufficientReserves: If the pool has no shares outstanding
    """
    _require_positive(shares=shares)
    if total_shares <= 0:
        raise InsufficientReserves("Pool has no shares outstanding")

    amount_a = S(shares).mul_div(reserve_a, total_shares)
    amount_b = S(shares).mul_div(reserve_b, total_shares)
    return amount_a.value, amount_b.value


def spot_price(reserve_x: int, reserve_y: int, scale: int = PRICE_SCALE) -> int:
    """Units of Y per unit of X, multiplied by scale (truncated).

    Raises:
        EmptyPoolPriceUndefined: If either reserve is zero
    """
    if reserve_x <= 0 or reserve_y <= 0:
        raise EmptyPoolPriceUndefined(
            f"Price undefined for reserves ({reserve_x}, {reserve_y})"
        )
    return S(reserve_y).mul_div(scale, reserve_x).value


def _require_positive(**amounts: int) -> None:
    for name, value in amounts.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"{name} must be an int, got {type(value).__name__}")
        if value <= 0:
            raise NonPositiveAmount(f"{name} must be positive: {value}")
