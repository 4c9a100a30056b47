"""Pool configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from amm_pool.constants import (
    ENV_CHECK_INVARIANTS,
    ENV_PRICE_SCALE,
    ENV_RECORD_EVENTS,
    PRICE_SCALE,
    TRUTHY,
)


@dataclass(frozen=True)
class PoolConfig:
    """Centralized configuration for a Pool.

    Attributes:
        price_scale: Multiplier applied by quote_price() (default: 1e18)
        check_invariants: If True, re-check pool invariants after every
            committed transition and roll back on violation.
        record_events: If True, append an event record for every committed
            transition to Pool.events.
    """

    price_scale: int = PRICE_SCALE
    check_invariants: bool = True
    record_events: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.price_scale, int) or isinstance(self.price_scale, bool):
            raise TypeError(f"price_scale must be an int, got {type(self.price_scale).__name__}")
        if self.price_scale <= 0:
            raise ValueError(f"price_scale must be positive: {self.price_scale}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PoolConfig:
        """Build a config from environment variables.

        Configuration via environment variables:
        - AMM_POOL_PRICE_SCALE: quote_price multiplier (default: 10**18)
        - AMM_POOL_CHECK_INVARIANTS: re-check invariants (default: true)
        - AMM_POOL_RECORD_EVENTS: keep an event log (default: true)
        """
        env = os.environ if environ is None else environ
        scale_raw = env.get(ENV_PRICE_SCALE)
        try:
            price_scale = int(scale_raw) if scale_raw else PRICE_SCALE
        except ValueError as err:
            raise ValueError(f"{ENV_PRICE_SCALE} must be an integer: '{scale_raw}'") from err
        return cls(
            price_scale=price_scale,
            check_invariants=_flag(env, ENV_CHECK_INVARIANTS, default=True),
            record_events=_flag(env, ENV_RECORD_EVENTS, default=True),
        )


def _flag(env: Mapping[str, str], name: str, *, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in TRUTHY


# Default configuration instance
DEFAULT_POOL_CONFIG = PoolConfig()
