"""Pool error classes.

Every failure surfaced by a Pool operation is one of these. An operation that
raises has left the pool and both ledgers exactly as they were before the call.
"""

from __future__ import annotations


class PoolError(Exception):
    """Base error for pool operations."""

    pass


class DeadlineExpired(PoolError):
    """The caller's deadline is earlier than the pool clock."""

    def __init__(self, deadline: int, now: int) -> None:
        self.deadline = deadline
        self.now = now
        super().__init__(f"Deadline {deadline} expired (now={now})")


class InvalidAssetPair(PoolError):
    """Asset identifiers do not match the pool's bound pair."""

    pass


class NonPositiveAmount(PoolError):
    """An amount that must be strictly positive is zero or negative."""

    pass


class SlippageExceeded(PoolError):
    """Actual amount is below the caller's stated minimum."""

    def __init__(self, what: str, actual: int, minimum: int) -> None:
        self.what = what
        self.actual = actual
        self.minimum = minimum
        super().__init__(f"{what}: actual {actual} < minimum {minimum}")


class InsufficientShares(PoolError):
    """Redemption exceeds the holder's share balance or the total supply."""

    pass


class InsufficientReserves(PoolError):
    """Operation would drive a reserve negative or needs liquidity the pool lacks."""

    pass


class EmptyPoolPriceUndefined(PoolError):
    """Price requested while a reserve is zero."""

    pass


class InvariantViolation(PoolError):
    """Raised when a post-state violates one or more pool invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class LedgerError(Exception):
    """Base error for asset and share ledger collaborators."""

    pass


class InsufficientBalance(LedgerError):
    """Account cannot cover the transfer."""

    pass


class InsufficientAllowance(LedgerError):
    """Account has not approved enough for the pool to pull."""

    pass


class RollbackIncomplete(Exception):
    """A failed operation could not undo every ledger call it had already made.

    The pool keeps the effect of each call that could not be undone, so its
    reserves and share supply still match the ledgers. The original failure
    is chained as __cause__.

    Attributes:
        operation: Pool operation that failed
        state: (reserve_a, reserve_b, total_shares) left in the pool
        undo_errors: Errors raised by the undo calls, newest step first
    """

    def __init__(
        self, operation: str, state: tuple[int, int, int], undo_errors: list[Exception]
    ) -> None:
        self.operation = operation
        self.state = state
        self.undo_errors = undo_errors
        super().__init__(
            f"{operation} rolled back partially; {len(undo_errors)} ledger call(s) "
            f"could not be undone, pool left at {state}"
        )
