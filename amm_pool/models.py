"""Result types, event records and snapshots for Pool.

Operation results are plain dataclasses that unpack like the tuples callers
expect. Events and snapshots are pydantic models so a host can serialize them
with model_dump() / model_dump_json().
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Non-negative integer quantity (reserve, share or transfer amount)
Amount = Annotated[int, Field(ge=0, strict=True)]


@dataclass(frozen=True)
class AddLiquidityResult:
    """Outcome of add_liquidity.

    Amounts are reported in the caller's asset order.
    """

    amount_a: int
    amount_b: int
    shares: int

    def __iter__(self) -> Iterator[int]:
        return iter((self.amount_a, self.amount_b, self.shares))


@dataclass(frozen=True)
class RemoveLiquidityResult:
    """Outcome of remove_liquidity."""

    amount_a: int
    amount_b: int

    def __iter__(self) -> Iterator[int]:
        return iter((self.amount_a, self.amount_b))


@dataclass(frozen=True)
class SwapResult:
    """Outcome of a swap through the pool."""

    amount_in: int
    amount_out: int
    input_asset: str
    output_asset: str

    def __iter__(self) -> Iterator[int]:
        return iter((self.amount_in, self.amount_out))


class PoolEvent(BaseModel):
    """Common fields of every committed pool transition."""

    model_config = ConfigDict(frozen=True)

    sequence: Amount
    timestamp: int
    reserve_a: Amount
    reserve_b: Amount
    total_shares: Amount


class LiquidityAdded(PoolEvent):
    kind: Literal["liquidity_added"] = "liquidity_added"
    sender: str
    recipient: str
    amount_a: Amount
    amount_b: Amount
    shares: Amount


class LiquidityRemoved(PoolEvent):
    kind: Literal["liquidity_removed"] = "liquidity_removed"
    sender: str
    recipient: str
    amount_a: Amount
    amount_b: Amount
    shares: Amount


class Swapped(PoolEvent):
    kind: Literal["swapped"] = "swapped"
    sender: str
    recipient: str
    input_asset: str
    output_asset: str
    amount_in: Amount
    amount_out: Amount


AnyPoolEvent = Union[LiquidityAdded, LiquidityRemoved, Swapped]


class PoolSnapshot(BaseModel):
    """Immutable view of pool state at one point in time."""

    model_config = ConfigDict(frozen=True)

    asset_a: str
    asset_b: str
    reserve_a: Amount
    reserve_b: Amount
    total_shares: Amount

    @model_validator(mode="after")
    def _empty_or_funded(self) -> PoolSnapshot:
        empties = {self.reserve_a == 0, self.reserve_b == 0, self.total_shares == 0}
        if len(empties) != 1:
            raise ValueError(
                "reserve_a, reserve_b and total_shares must be all zero or all positive: "
                f"({self.reserve_a}, {self.reserve_b}, {self.total_shares})"
            )
        return self

    @property
    def is_empty(self) -> bool:
        return self.total_shares == 0

    @property
    def product(self) -> int:
        """Constant product k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b
