"""Two-asset constant-product pool.

Pool owns the reserves of its two assets and the outstanding share supply.
Every public operation runs under the pool lock and follows the same order:

1. Validate preconditions (deadline, amounts, asset pair, balances).
2. Compute amounts with the integer formulas in amm_pool.math.
3. Commit the new reserves and share supply.
4. Delegate transfers, mints and burns to the ledgers.

Each ledger call is paired with its inverse. If a later step fails the
inverses run in reverse order and the pre-commit state is restored, so an
operation is either fully applied or leaves no trace. If an inverse itself
fails, the pool keeps the effect of that step so its reserves still match
the ledgers, and RollbackIncomplete is raised.
"""

from __future__ import annotations

import contextlib
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import partial

import structlog

from amm_pool.config import DEFAULT_POOL_CONFIG, PoolConfig
from amm_pool.errors import (
    DeadlineExpired,
    InsufficientReserves,
    InsufficientShares,
    InvalidAssetPair,
    InvariantViolation,
    NonPositiveAmount,
    PoolError,
    RollbackIncomplete,
    SlippageExceeded,
)
from amm_pool.ledgers import AssetLedger, ShareLedger
from amm_pool.math.constant_product import (
    deposit_amounts,
    get_amount_in,
    get_amount_out,
    redeem_amounts,
    spot_price,
)
from amm_pool.models import (
    AddLiquidityResult,
    AnyPoolEvent,
    LiquidityAdded,
    LiquidityRemoved,
    PoolSnapshot,
    RemoveLiquidityResult,
    Swapped,
    SwapResult,
)
from amm_pool.safe_int import S, Underflow

logger = structlog.get_logger()

Clock = Callable[[], int]


def system_clock() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


@dataclass(frozen=True)
class LedgerStep:
    """A ledger call run after commit, paired with its inverse.

    Attributes:
        action: The delegated ledger call
        undo: Call that reverses action
        delta: Change to (reserve_a, reserve_b, total_shares) this call accounts for
    """

    action: Callable[[], None]
    undo: Callable[[], None]
    delta: tuple[int, int, int]


class Pool:
    """Constant-product pool for one asset pair.

    Attributes:
        asset_a: First asset identifier (immutable)
        asset_b: Second asset identifier (immutable)
        asset_ledger: Collaborator holding pool custody of both assets
        share_ledger: Collaborator holding liquidity-share balances
        config: PoolConfig in effect
    """

    def __init__(
        self,
        asset_a: str,
        asset_b: str,
        asset_ledger: AssetLedger,
        share_ledger: ShareLedger,
        *,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        clock: Clock = system_clock,
    ) -> None:
        if not asset_a or not asset_b:
            raise InvalidAssetPair("Asset identifiers must be non-empty")
        if asset_a == asset_b:
            raise InvalidAssetPair(f"Pool assets must differ: {asset_a}")

        self._asset_a = asset_a
        self._asset_b = asset_b
        self.asset_ledger = asset_ledger
        self.share_ledger = share_ledger
        self.config = config
        self._clock = clock

        self._lock = threading.RLock()
        self._reserve_a = 0
        self._reserve_b = 0
        self._total_shares = 0
        self._sequence = 0
        self._events: list[AnyPoolEvent] = []

    # --- State views ---

    @property
    def asset_a(self) -> str:
        return self._asset_a

    @property
    def asset_b(self) -> str:
        return self._asset_b

    @property
    def name(self) -> str:
        return f"{self._asset_a}/{self._asset_b}"

    @property
    def reserve_a(self) -> int:
        with self._lock:
            return self._reserve_a

    @property
    def reserve_b(self) -> int:
        with self._lock:
            return self._reserve_b

    @property
    def total_shares(self) -> int:
        with self._lock:
            return self._total_shares

    @property
    def reserves(self) -> tuple[int, int]:
        """Current (reserve_a, reserve_b), read atomically."""
        with self._lock:
            return self._reserve_a, self._reserve_b

    @property
    def events(self) -> list[AnyPoolEvent]:
        """Committed transitions in order (copy)."""
        with self._lock:
            return list(self._events)

    def get_reserves(self, input_asset: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        with self._lock:
            if input_asset == self._asset_a:
                return self._reserve_a, self._reserve_b
            elif input_asset == self._asset_b:
                return self._reserve_b, self._reserve_a
            else:
                raise InvalidAssetPair(f"Asset {input_asset} not in pool {self.name}")

    def snapshot(self) -> PoolSnapshot:
        with self._lock:
            return PoolSnapshot(
                asset_a=self._asset_a,
                asset_b=self._asset_b,
                reserve_a=self._reserve_a,
                reserve_b=self._reserve_b,
                total_shares=self._total_shares,
            )

    def __repr__(self) -> str:
        return (
            f"Pool({self.name}, reserves=({self._reserve_a}, {self._reserve_b}), "
            f"total_shares={self._total_shares})"
        )

    # --- Liquidity provisioning ---

    def add_liquidity(
        self,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        recipient: str,
        deadline: int,
        *,
        sender: str,
        asset_a: str | None = None,
        asset_b: str | None = None,
    ) -> AddLiquidityResult:
        """Deposit both assets and mint shares to recipient.

        An empty pool accepts the desired amounts as-is and mints
        isqrt(amount_a * amount_b) shares. A funded pool mints
        min(a * T // reserve_a, b * T // reserve_b) shares, takes the limiting
        asset in full and only as much of the other as the minted shares are
        worth; the excess is never pulled from sender.

        Args:
            amount_a_desired: Most of asset A the caller will contribute
            amount_b_desired: Most of asset B the caller will contribute
            amount_a_min: Least of asset A the caller accepts contributing
            amount_b_min: Least of asset B the caller accepts contributing
            recipient: Account credited with the minted shares
            deadline: Latest clock value at which the call is valid
            sender: Account the assets are pulled from
            asset_a: Optional identifier for the first amount pair; together with
                asset_b it must name the pool's pair, in either order
            asset_b: Optional identifier for the second amount pair

        Returns:
            AddLiquidityResult with accepted amounts in the caller's order

        Raises:
            DeadlineExpired, NonPositiveAmount, InvalidAssetPair, SlippageExceeded
        """
        with self._lock, self._rejections("add_liquidity", sender=sender):
            self._check_deadline(deadline)
            result, flipped = self._plan_add(
                amount_a_desired, amount_b_desired, amount_a_min, amount_b_min, asset_a, asset_b
            )
            pool_a, pool_b = (
                (result.amount_b, result.amount_a) if flipped else (result.amount_a, result.amount_b)
            )

            new_state = (
                self._reserve_a + pool_a,
                self._reserve_b + pool_b,
                self._total_shares + result.shares,
            )

            self._apply(
                "add_liquidity",
                new_state,
                [
                    *self._pull(self._asset_a, sender, pool_a),
                    *self._pull(self._asset_b, sender, pool_b),
                    LedgerStep(
                        partial(self.share_ledger.mint, recipient, result.shares),
                        partial(self.share_ledger.burn, recipient, result.shares),
                        (0, 0, result.shares),
                    ),
                ],
            )

            sequence = self._record(
                LiquidityAdded,
                sender=sender,
                recipient=recipient,
                amount_a=pool_a,
                amount_b=pool_b,
                shares=result.shares,
            )
            logger.info(
                "pool_add_liquidity",
                pool=self.name,
                sequence=sequence,
                sender=sender,
                recipient=recipient,
                amount_a=pool_a,
                amount_b=pool_b,
                shares=result.shares,
                reserve_a=self._reserve_a,
                reserve_b=self._reserve_b,
                total_shares=self._total_shares,
            )
            return result

    def preview_add_liquidity(
        self,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int = 0,
        amount_b_min: int = 0,
        *,
        asset_a: str | None = None,
        asset_b: str | None = None,
        deadline: int | None = None,
    ) -> AddLiquidityResult:
        """Run add_liquidity's checks and math without touching state or ledgers."""
        with self._lock:
            if deadline is not None:
                self._check_deadline(deadline)
            result, _ = self._plan_add(
                amount_a_desired, amount_b_desired, amount_a_min, amount_b_min, asset_a, asset_b
            )
            return result

    def _plan_add(
        self,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        asset_a: str | None,
        asset_b: str | None,
    ) -> tuple[AddLiquidityResult, bool]:
        flipped = self._resolve_deposit_order(asset_a, asset_b)
        if flipped:
            amount_a_desired, amount_b_desired = amount_b_desired, amount_a_desired
            amount_a_min, amount_b_min = amount_b_min, amount_a_min
        _require_non_negative(amount_a_min=amount_a_min, amount_b_min=amount_b_min)

        amount_a, amount_b, shares = deposit_amounts(
            amount_a_desired,
            amount_b_desired,
            self._reserve_a,
            self._reserve_b,
            self._total_shares,
        )
        if shares <= 0:
            raise NonPositiveAmount(
                f"Deposit ({amount_a_desired}, {amount_b_desired}) too small to mint shares"
            )
        if amount_a < amount_a_min:
            raise SlippageExceeded(f"{self._asset_a} contributed", amount_a, amount_a_min)
        if amount_b < amount_b_min:
            raise SlippageExceeded(f"{self._asset_b} contributed", amount_b, amount_b_min)

        if flipped:
            return AddLiquidityResult(amount_a=amount_b, amount_b=amount_a, shares=shares), True
        return AddLiquidityResult(amount_a=amount_a, amount_b=amount_b, shares=shares), False

    def _resolve_deposit_order(self, asset_a: str | None, asset_b: str | None) -> bool:
        """Return True when the caller's amounts are in (asset_b, asset_a) order."""
        if asset_a is None and asset_b is None:
            return False
        if (asset_a, asset_b) == (self._asset_a, self._asset_b):
            return False
        if (asset_a, asset_b) == (self._asset_b, self._asset_a):
            return True
        raise InvalidAssetPair(f"Assets ({asset_a}, {asset_b}) do not match pool {self.name}")

    # --- Liquidity removal ---

    def remove_liquidity(
        self,
        shares: int,
        amount_a_min: int,
        amount_b_min: int,
        recipient: str,
        deadline: int,
        *,
        sender: str,
    ) -> RemoveLiquidityResult:
        """Burn sender's shares and pay the pro-rata reserves to recipient.

        amount_x = shares * reserve_x // total_shares, so redemption is never
        more generous than the holder's claim.

        Raises:
            DeadlineExpired, NonPositiveAmount, InsufficientShares, SlippageExceeded
        """
        with self._lock, self._rejections("remove_liquidity", sender=sender):
            self._check_deadline(deadline)
            result = self._plan_remove(shares, amount_a_min, amount_b_min, sender)

            try:
                new_state = (
                    (S(self._reserve_a) - result.amount_a).value,
                    (S(self._reserve_b) - result.amount_b).value,
                    (S(self._total_shares) - shares).value,
                )
            except Underflow as err:
                raise InsufficientReserves(str(err)) from err

            self._apply(
                "remove_liquidity",
                new_state,
                [
                    LedgerStep(
                        partial(self.share_ledger.burn, sender, shares),
                        partial(self.share_ledger.mint, sender, shares),
                        (0, 0, -shares),
                    ),
                    *self._push(self._asset_a, recipient, result.amount_a),
                    *self._push(self._asset_b, recipient, result.amount_b),
                ],
            )

            sequence = self._record(
                LiquidityRemoved,
                sender=sender,
                recipient=recipient,
                amount_a=result.amount_a,
                amount_b=result.amount_b,
                shares=shares,
            )
            logger.info(
                "pool_remove_liquidity",
                pool=self.name,
                sequence=sequence,
                sender=sender,
                recipient=recipient,
                shares=shares,
                amount_a=result.amount_a,
                amount_b=result.amount_b,
                reserve_a=self._reserve_a,
                reserve_b=self._reserve_b,
                total_shares=self._total_shares,
            )
            return result

    def preview_remove_liquidity(
        self,
        shares: int,
        amount_a_min: int = 0,
        amount_b_min: int = 0,
        *,
        sender: str | None = None,
        deadline: int | None = None,
    ) -> RemoveLiquidityResult:
        """Run remove_liquidity's checks and math without touching state or ledgers.

        The sender balance check is skipped when sender is None.
        """
        with self._lock:
            if deadline is not None:
                self._check_deadline(deadline)
            return self._plan_remove(shares, amount_a_min, amount_b_min, sender)

    def _plan_remove(
        self,
        shares: int,
        amount_a_min: int,
        amount_b_min: int,
        sender: str | None,
    ) -> RemoveLiquidityResult:
        if not isinstance(shares, int) or isinstance(shares, bool):
            raise TypeError(f"shares must be an int, got {type(shares).__name__}")
        if shares <= 0:
            raise NonPositiveAmount(f"shares must be positive: {shares}")
        _require_non_negative(amount_a_min=amount_a_min, amount_b_min=amount_b_min)

        if sender is not None:
            held = self.share_ledger.balance_of(sender)
            if held < shares:
                raise InsufficientShares(f"{sender} holds {held} shares, redeeming {shares}")
        if shares > self._total_shares:
            raise InsufficientShares(
                f"Redeeming {shares} shares exceeds total supply {self._total_shares}"
            )

        amount_a, amount_b = redeem_amounts(
            shares, self._reserve_a, self._reserve_b, self._total_shares
        )
        if amount_a == 0 and amount_b == 0:
            raise NonPositiveAmount(
                f"Burning {shares} shares returns ({amount_a}, {amount_b}); nothing to redeem"
            )
        if amount_a < amount_a_min:
            raise SlippageExceeded(f"{self._asset_a} redeemed", amount_a, amount_a_min)
        if amount_b < amount_b_min:
            raise SlippageExceeded(f"{self._asset_b} redeemed", amount_b, amount_b_min)

        return RemoveLiquidityResult(amount_a=amount_a, amount_b=amount_b)

    # --- Swap ---

    def swap(
        self,
        amount_in: int,
        amount_out_min: int,
        input_asset: str,
        output_asset: str,
        recipient: str,
        deadline: int,
        *,
        sender: str,
    ) -> SwapResult:
        """Sell amount_in of input_asset for output_asset.

        Formula: amount_out = amount_in * reserve_out // (reserve_in + amount_in)

        Truncation keeps reserve_a * reserve_b from decreasing.

        Raises:
            InvalidAssetPair, DeadlineExpired, NonPositiveAmount,
            InsufficientReserves, SlippageExceeded
        """
        with self._lock, self._rejections("swap", sender=sender):
            input_is_a = self._swap_direction(input_asset, output_asset)
            self._check_deadline(deadline)
            result = self._plan_swap(amount_in, amount_out_min, input_asset, output_asset)

            reserve_in, reserve_out = (
                (self._reserve_a, self._reserve_b) if input_is_a else (self._reserve_b, self._reserve_a)
            )
            try:
                new_in = (S(reserve_in) + result.amount_in).value
                new_out = (S(reserve_out) - result.amount_out).value
            except Underflow as err:
                raise InsufficientReserves(str(err)) from err
            new_a, new_b = (new_in, new_out) if input_is_a else (new_out, new_in)

            self._apply(
                "swap",
                (new_a, new_b, self._total_shares),
                [
                    *self._pull(input_asset, sender, result.amount_in),
                    *self._push(output_asset, recipient, result.amount_out),
                ],
                min_product=S(self._reserve_a) * S(self._reserve_b),
            )

            sequence = self._record(
                Swapped,
                sender=sender,
                recipient=recipient,
                input_asset=input_asset,
                output_asset=output_asset,
                amount_in=result.amount_in,
                amount_out=result.amount_out,
            )
            logger.info(
                "pool_swap",
                pool=self.name,
                sequence=sequence,
                sender=sender,
                recipient=recipient,
                input_asset=input_asset,
                amount_in=result.amount_in,
                amount_out=result.amount_out,
                reserve_a=self._reserve_a,
                reserve_b=self._reserve_b,
            )
            return result

    def preview_swap(
        self,
        amount_in: int,
        input_asset: str,
        output_asset: str,
        amount_out_min: int = 0,
        *,
        deadline: int | None = None,
    ) -> SwapResult:
        """Run swap's checks and math without touching state or ledgers."""
        with self._lock:
            self._swap_direction(input_asset, output_asset)
            if deadline is not None:
                self._check_deadline(deadline)
            return self._plan_swap(amount_in, amount_out_min, input_asset, output_asset)

    def _plan_swap(
        self,
        amount_in: int,
        amount_out_min: int,
        input_asset: str,
        output_asset: str,
    ) -> SwapResult:
        if not isinstance(amount_in, int) or isinstance(amount_in, bool):
            raise TypeError(f"amount_in must be an int, got {type(amount_in).__name__}")
        if amount_in <= 0:
            raise NonPositiveAmount(f"amount_in must be positive: {amount_in}")
        _require_non_negative(amount_out_min=amount_out_min)
        if self._total_shares == 0:
            raise InsufficientReserves(f"Pool {self.name} has no liquidity")

        reserve_in, reserve_out = self.get_reserves(input_asset)
        amount_out = get_amount_out(amount_in, reserve_in, reserve_out)
        if amount_out == 0:
            raise NonPositiveAmount(
                f"Swapping {amount_in} {input_asset} yields no {output_asset}"
            )
        if amount_out >= reserve_out:
            raise InsufficientReserves(
                f"amount_out ({amount_out}) would drain reserve_out ({reserve_out})"
            )
        if amount_out < amount_out_min:
            raise SlippageExceeded(f"{output_asset} received", amount_out, amount_out_min)

        return SwapResult(
            amount_in=amount_in,
            amount_out=amount_out,
            input_asset=input_asset,
            output_asset=output_asset,
        )

    def _swap_direction(self, input_asset: str, output_asset: str) -> bool:
        """Return True when input_asset is asset_a; reject anything but the pool's pair."""
        if input_asset == self._asset_a and output_asset == self._asset_b:
            return True
        if input_asset == self._asset_b and output_asset == self._asset_a:
            return False
        raise InvalidAssetPair(
            f"Path ({input_asset} -> {output_asset}) does not match pool {self.name}"
        )

    # --- Price and quote views ---

    def quote_price(self, asset_x: str, asset_y: str) -> int:
        """Units of asset_y per unit of asset_x, scaled by config.price_scale.

        Raises:
            InvalidAssetPair: If (asset_x, asset_y) is not the pool's pair
            EmptyPoolPriceUndefined: If the pool has no reserves
        """
        with self._lock:
            x_is_a = self._swap_direction(asset_x, asset_y)
            reserve_x, reserve_y = (
                (self._reserve_a, self._reserve_b) if x_is_a else (self._reserve_b, self._reserve_a)
            )
            return spot_price(reserve_x, reserve_y, self.config.price_scale)

    @staticmethod
    def quote_swap_output(amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Pure swap-output estimate; independent of any pool's state."""
        return get_amount_out(amount_in, reserve_in, reserve_out)

    @staticmethod
    def quote_swap_input(amount_out: int, reserve_in: int, reserve_out: int) -> int:
        """Pure exact-output estimate: smallest input yielding at least amount_out."""
        return get_amount_in(amount_out, reserve_in, reserve_out)

    # --- Invariants ---

    def check_invariants(self) -> list[str]:
        """Return the names of violated invariants for the current state (empty if none)."""
        with self._lock:
            return self._violations(None)

    def _violations(self, min_product: S | None) -> list[str]:
        violations = []
        for name, value in (
            ("reserve_a", self._reserve_a),
            ("reserve_b", self._reserve_b),
            ("total_shares", self._total_shares),
        ):
            if value < 0:
                violations.append(f"{name}_negative")
        empties = {self._reserve_a == 0, self._reserve_b == 0, self._total_shares == 0}
        if len(empties) != 1:
            violations.append("empty_or_funded")
        if min_product is not None and S(self._reserve_a) * S(self._reserve_b) < min_product:
            violations.append("product_decreased")
        return violations

    # --- Commit / delegate machinery ---

    def _apply(
        self,
        operation: str,
        new_state: tuple[int, int, int],
        steps: list[LedgerStep],
        *,
        min_product: S | None = None,
    ) -> None:
        """Commit new_state, then run ledger steps; unwind on failure."""
        saved = (self._reserve_a, self._reserve_b, self._total_shares)
        self._reserve_a, self._reserve_b, self._total_shares = new_state

        if self.config.check_invariants:
            violations = self._violations(min_product)
            if violations:
                self._restore(operation, saved)
                raise InvariantViolation(violations)

        done: list[LedgerStep] = []
        try:
            for step in steps:
                step.action()
                done.append(step)
        except Exception as err:
            self._unwind(operation, saved, done, err)
            raise

    def _unwind(
        self,
        operation: str,
        saved: tuple[int, int, int],
        done: list[LedgerStep],
        cause: Exception,
    ) -> None:
        """Undo completed steps newest first.

        A step whose undo fails stays applied on the ledger, so its delta stays
        applied to the pool as well and RollbackIncomplete is raised from cause.
        """
        reserve_a, reserve_b, total_shares = saved
        undo_errors: list[Exception] = []
        for step in reversed(done):
            try:
                step.undo()
            except Exception as err:
                undo_errors.append(err)
                delta_a, delta_b, delta_shares = step.delta
                reserve_a += delta_a
                reserve_b += delta_b
                total_shares += delta_shares

        state = (reserve_a, reserve_b, total_shares)
        self._restore(operation, state)
        if undo_errors:
            logger.error(
                "pool_rollback_incomplete",
                pool=self.name,
                operation=operation,
                cause=repr(cause),
                undo_errors=[repr(err) for err in undo_errors],
                state=state,
            )
            raise RollbackIncomplete(operation, state, undo_errors) from cause

    def _restore(self, operation: str, state: tuple[int, int, int]) -> None:
        logger.warning(
            "pool_rollback",
            pool=self.name,
            operation=operation,
            attempted=(self._reserve_a, self._reserve_b, self._total_shares),
            restored=state,
        )
        self._reserve_a, self._reserve_b, self._total_shares = state

    def _pull(self, asset: str, sender: str, amount: int) -> list[LedgerStep]:
        if amount == 0:
            return []
        return [
            LedgerStep(
                partial(self.asset_ledger.transfer_in, asset, sender, amount),
                partial(self.asset_ledger.transfer_out, asset, sender, amount),
                self._reserve_delta(asset, amount),
            )
        ]

    def _push(self, asset: str, recipient: str, amount: int) -> list[LedgerStep]:
        """transfer_out step; nothing is sent for a zero amount."""
        if amount == 0:
            return []
        return [
            LedgerStep(
                partial(self.asset_ledger.transfer_out, asset, recipient, amount),
                partial(self.asset_ledger.transfer_in, asset, recipient, amount),
                self._reserve_delta(asset, -amount),
            )
        ]

    def _reserve_delta(self, asset: str, amount: int) -> tuple[int, int, int]:
        if asset == self._asset_a:
            return amount, 0, 0
        return 0, amount, 0

    def _record(self, event_type: type[AnyPoolEvent], **fields: object) -> int:
        self._sequence += 1
        if self.config.record_events:
            self._events.append(
                event_type(
                    sequence=self._sequence,
                    timestamp=self._clock(),
                    reserve_a=self._reserve_a,
                    reserve_b=self._reserve_b,
                    total_shares=self._total_shares,
                    **fields,
                )
            )
        return self._sequence

    def _check_deadline(self, deadline: int) -> None:
        now = self._clock()
        if now > deadline:
            raise DeadlineExpired(deadline, now)

    @contextlib.contextmanager
    def _rejections(self, operation: str, **context: object) -> Iterator[None]:
        try:
            yield
        except PoolError as err:
            logger.debug(
                f"pool_{operation}_rejected",
                pool=self.name,
                error=type(err).__name__,
                detail=str(err),
                **context,
            )
            raise


def _require_non_negative(**amounts: int) -> None:
    for name, value in amounts.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"{name} must be an int, got {type(value).__name__}")
        if value < 0:
            raise NonPositiveAmount(f"{name} must be non-negative: {value}")


# Module-level aliases for the pure quote views
quote_swap_output = get_amount_out
quote_swap_input = get_amount_in
