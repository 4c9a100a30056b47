"""Two-asset constant-product AMM pool."""

from amm_pool.config import DEFAULT_POOL_CONFIG, PoolConfig
from amm_pool.errors import (
    DeadlineExpired,
    EmptyPoolPriceUndefined,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientReserves,
    InsufficientShares,
    InvalidAssetPair,
    InvariantViolation,
    LedgerError,
    NonPositiveAmount,
    PoolError,
    RollbackIncomplete,
    SlippageExceeded,
)
from amm_pool.ledgers import AssetLedger, InMemoryAssetLedger, InMemoryShareLedger, ShareLedger
from amm_pool.logs import configure_logging
from amm_pool.models import (
    AddLiquidityResult,
    LiquidityAdded,
    LiquidityRemoved,
    PoolSnapshot,
    RemoveLiquidityResult,
    Swapped,
    SwapResult,
)
from amm_pool.pool import Pool, quote_swap_input, quote_swap_output

__version__ = "0.1.0"
__all__ = [
    # Pool
    "Pool",
    "quote_swap_output",
    "quote_swap_input",
    # Configuration
    "PoolConfig",
    "DEFAULT_POOL_CONFIG",
    "configure_logging",
    # Ledgers
    "AssetLedger",
    "ShareLedger",
    "InMemoryAssetLedger",
    "InMemoryShareLedger",
    # Results, events and snapshots
    "AddLiquidityResult",
    "RemoveLiquidityResult",
    "SwapResult",
    "LiquidityAdded",
    "LiquidityRemoved",
    "Swapped",
    "PoolSnapshot",
    # Errors
    "PoolError",
    "DeadlineExpired",
    "InvalidAssetPair",
    "NonPositiveAmount",
    "SlippageExceeded",
    "InsufficientShares",
    "InsufficientReserves",
    "EmptyPoolPriceUndefined",
    "InvariantViolation",
    "LedgerError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "RollbackIncomplete",
    "__version__",
]
