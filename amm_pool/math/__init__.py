"""Integer math for constant-product pools."""

from amm_pool.math.constant_product import (
    deposit_amounts,
    get_amount_in,
    get_amount_out,
    initial_shares,
    quote,
    redeem_amounts,
    spot_price,
)

__all__ = [
    "get_amount_out",
    "get_amount_in",
    "quote",
    "initial_shares",
    "deposit_amounts",
    "redeem_amounts",
    "spot_price",
]
