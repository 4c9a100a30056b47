"""Pool-wide constants.

Centralizes the price scale and the environment variable names read by
PoolConfig.from_env().
"""

# Price scaling factor (1e18 for precision)
# quote_price() returns units of Y per unit of X multiplied by this factor
PRICE_SCALE = 10**18

# Environment variables understood by PoolConfig.from_env()
ENV_PRICE_SCALE = "AMM_POOL_PRICE_SCALE"
ENV_CHECK_INVARIANTS = "AMM_POOL_CHECK_INVARIANTS"
ENV_RECORD_EVENTS = "AMM_POOL_RECORD_EVENTS"
ENV_LOG_LEVEL = "AMM_POOL_LOG_LEVEL"

# Values accepted as "true" for boolean environment flags
TRUTHY = ("true", "1", "yes", "on")
